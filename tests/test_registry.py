"""
Tests for the printer registry.
"""

import threading
import time

import pytest

from briez_print_agent.exceptions import PrinterNotFound
from briez_print_agent.models import Printer
from briez_print_agent.discovery import parse_lpstat
from briez_print_agent.registry import PrinterRegistry, merge_printers

from conftest import FakeSource, make_local_printer


@pytest.fixture
def local_printers():
    return [
        make_local_printer('EPSON TM-T20', port_name='IP_192.168.0.100', address='192.168.0.100'),
        make_local_printer('Caixa', port_name='USB001'),
    ]


@pytest.fixture
def network_printers():
    return [Printer.from_network('192.168.0.100'), Printer.from_network('192.168.0.101')]


class TestMerge:

    def test_os_record_wins_for_same_address(self, local_printers, network_printers):
        merged = merge_printers(local_printers, network_printers)
        at_100 = [p for p in merged if p.address == '192.168.0.100']

        assert len(at_100) == 1
        assert at_100[0].os_handle == 'EPSON TM-T20'
        assert at_100[0].id.startswith('local-')

    def test_order_is_local_then_network(self, local_printers, network_printers):
        merged = merge_printers(local_printers, network_printers)
        assert [p.name for p in merged] == ['EPSON TM-T20', 'Caixa', 'Impressora 192.168.0.101']

    def test_ids_are_unique(self, local_printers, network_printers):
        merged = merge_printers(local_printers + local_printers, network_printers + network_printers)
        ids = [p.id for p in merged]
        assert len(ids) == len(set(ids))

    def test_ipp_queue_absorbs_probed_printer_at_same_address(self):
        local = parse_lpstat("device for Cozinha: ipp://192.168.0.100/ipp/print\n")
        merged = merge_printers(local, [Printer.from_network('192.168.0.100')])

        assert len(merged) == 1
        assert merged[0].os_handle == 'Cozinha'
        assert merged[0].address == '192.168.0.100'


class TestCache:

    def test_second_call_within_ttl_does_no_discovery(self, local_printers, fake_clock):
        local, network = FakeSource(local_printers), FakeSource()
        registry = PrinterRegistry(local, network, ttl=30, clock=fake_clock)

        first = registry.list()
        fake_clock.advance(29)
        second = registry.list()

        assert first == second
        assert local.calls == 1
        assert network.calls == 1

    def test_refresh_after_ttl(self, local_printers, fake_clock):
        local, network = FakeSource(local_printers), FakeSource()
        registry = PrinterRegistry(local, network, ttl=30, clock=fake_clock)

        registry.list()
        fake_clock.advance(30)
        registry.list()

        assert local.calls == 2
        assert network.calls == 2

    def test_empty_result_is_not_cached(self, fake_clock):
        local, network = FakeSource(), FakeSource()
        registry = PrinterRegistry(local, network, ttl=30, clock=fake_clock)

        assert registry.list() == []
        assert registry.list() == []
        assert local.calls == 2

    def test_snapshot_is_replaced_not_mutated(self, local_printers, fake_clock):
        registry = PrinterRegistry(FakeSource(local_printers), FakeSource(), ttl=30, clock=fake_clock)

        registry.list()
        before = registry.snapshot
        fake_clock.advance(31)
        registry.list()

        assert registry.snapshot is not before
        assert registry.snapshot.produced_at == fake_clock.now

    def test_ids_are_stable_across_refreshes(self, local_printers, network_printers, fake_clock):
        registry = PrinterRegistry(FakeSource(local_printers), FakeSource(network_printers),
                                   ttl=30, clock=fake_clock)

        first = [p.id for p in registry.list()]
        fake_clock.advance(60)
        second = [p.id for p in registry.list()]

        assert first == second


class TestSingleFlight:

    def test_concurrent_callers_share_one_refresh(self, local_printers):
        local = FakeSource(local_printers, delay=0.3)
        network = FakeSource(delay=0.3)
        registry = PrinterRegistry(local, network, ttl=30)

        results = []
        barrier = threading.Barrier(10)

        def call():
            barrier.wait()
            results.append(registry.list())

        threads = [threading.Thread(target=call) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert local.calls == 1
        assert network.calls == 1
        assert len(results) == 10
        assert all(r == results[0] for r in results)

    def test_sources_run_concurrently(self, local_printers):
        registry = PrinterRegistry(FakeSource(local_printers, delay=0.4), FakeSource(delay=0.4), ttl=30)

        started = time.monotonic()
        registry.list()

        assert time.monotonic() - started < 0.75


class TestFailures:

    def test_source_error_keeps_previous_snapshot(self, local_printers, fake_clock):
        local = FakeSource(local_printers)
        registry = PrinterRegistry(local, FakeSource(), ttl=30, clock=fake_clock)
        first = registry.list()

        local.error = RuntimeError('wmic exploded')
        fake_clock.advance(31)

        assert registry.list() == first
        assert local.calls == 2
        assert 'refresh' in registry.discovery_errors

    def test_source_error_with_no_previous_snapshot(self, fake_clock):
        registry = PrinterRegistry(FakeSource(error=RuntimeError('boom')), FakeSource(), ttl=30, clock=fake_clock)
        assert registry.list() == []

    def test_refresh_timeout_keeps_previous_snapshot(self):
        registry = PrinterRegistry(FakeSource(delay=1.0), FakeSource(), ttl=30, timeout=0.1)

        started = time.monotonic()
        assert registry.list() == []
        assert time.monotonic() - started < 0.9
        assert 'timed out' in registry.discovery_errors['refresh']

    def test_reported_failures_are_exposed(self, fake_clock):
        registry = PrinterRegistry(FakeSource(), FakeSource(), clock=fake_clock)

        def failing_local():
            registry.report_discovery_failure('local', OSError('wmic not found'))
            return []

        registry.local_source = failing_local
        registry.list()

        assert registry.discovery_errors == {'local': 'wmic not found'}


class TestLookup:

    def test_get(self, local_printers, fake_clock):
        registry = PrinterRegistry(FakeSource(local_printers), FakeSource(), clock=fake_clock)
        printer = local_printers[1]

        assert registry.get(printer.id) == printer
        assert registry.get('nope') is None

    def test_require_unknown(self, local_printers, fake_clock):
        registry = PrinterRegistry(FakeSource(local_printers), FakeSource(), clock=fake_clock)

        with pytest.raises(PrinterNotFound):
            registry.require('nope')
