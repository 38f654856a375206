"""
Tests for pool, tick array and oracle batch fetchers.
"""

import pytest
from solders.pubkey import Pubkey

from ..base import MAX_POOLS_PER_BATCH, BatchConfig, to_pubkey, validate_addresses
from ..errors import BatchSizeExceededError, TransportError, ValidationError
from ..oracles import OracleBatcher, fetch_oracle_accounts
from ..pool_accounts import PoolAccountBatcher, fetch_pool_accounts
from ..tick_arrays import TickArrayBatcher, fetch_tick_array_accounts, flatten_windows, regroup_windows


def _keys(n):
    return [Pubkey.new_unique() for _ in range(n)]


class TestAddressValidation:
    """Test address normalization."""

    def test_accepts_string_pubkey_and_bytes(self):
        key = Pubkey.new_unique()

        assert to_pubkey(str(key)) == key
        assert to_pubkey(key) is key
        assert to_pubkey(bytes(key)) == key

    @pytest.mark.parametrize("bad", ["not-a-key", "", 42, b"short"])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValidationError):
            to_pubkey(bad)

    def test_rejects_batch_with_one_bad_entry(self):
        with pytest.raises(ValidationError):
            validate_addresses([str(Pubkey.new_unique()), "oops"])


class TestPoolAccountBatcher:
    """Test the pool account read."""

    def test_one_read_in_input_order(self, reader):
        """Output is aligned with the input, None where absent."""
        pools = _keys(3)
        reader.accounts[pools[0]] = b"a"
        reader.accounts[pools[2]] = b"c"

        result = fetch_pool_accounts(reader, pools)

        assert result == [b"a", None, b"c"]
        assert reader.read_many_calls == [pools]

    def test_max_batch_accepted(self, reader):
        pools = _keys(MAX_POOLS_PER_BATCH)

        assert len(PoolAccountBatcher(reader).fetch(pools)) == MAX_POOLS_PER_BATCH

    def test_rejects_34_pools_before_any_call(self, reader):
        """Oversized batches fail without touching the reader."""
        with pytest.raises(BatchSizeExceededError) as exc_info:
            fetch_pool_accounts(reader, _keys(MAX_POOLS_PER_BATCH + 1))

        assert exc_info.value.requested == 34
        assert exc_info.value.limit == 33
        assert isinstance(exc_info.value, ValidationError)
        assert reader.call_count == 0

    def test_respects_configured_cap(self, reader):
        with pytest.raises(BatchSizeExceededError):
            PoolAccountBatcher(reader, BatchConfig(max_pools_per_batch=2)).fetch(_keys(3))

    def test_empty_input_makes_no_call(self, reader):
        assert fetch_pool_accounts(reader, []) == []
        assert reader.call_count == 0

    def test_transport_failure_tagged_with_stage(self, reader):
        reader.fail_read_many = lambda addresses: True

        with pytest.raises(TransportError) as exc_info:
            fetch_pool_accounts(reader, _keys(2))

        assert exc_info.value.stage == "pools"

    def test_unexpected_reader_error_becomes_transport_error(self, reader):
        def explode(addresses):
            raise RuntimeError("socket closed")

        reader.read_many = explode

        with pytest.raises(TransportError) as exc_info:
            fetch_pool_accounts(reader, _keys(1))

        assert "socket closed" in str(exc_info.value)

    def test_short_response_is_transport_error(self, reader):
        reader.read_many = lambda addresses: [None]

        with pytest.raises(TransportError):
            fetch_pool_accounts(reader, _keys(2))


class TestWindowFlattening:
    """Test flatten/regroup of tick array windows."""

    @pytest.mark.parametrize("n", [0, 1, 2, 17, 33])
    def test_regroup_inverts_flatten(self, n):
        triplets = [(f"l{i}", f"c{i}", f"r{i}") for i in range(n)]

        flat = flatten_windows(triplets)

        assert len(flat) == 3 * n
        assert regroup_windows(flat) == triplets

    def test_flat_index_maps_to_pool_and_slot(self):
        """Element 3*i + k belongs to pool i, slot k."""
        triplets = [(f"l{i}", f"c{i}", f"r{i}") for i in range(5)]
        flat = flatten_windows(triplets)

        for i in range(5):
            for k, prefix in enumerate("lcr"):
                assert flat[3 * i + k] == f"{prefix}{i}"

    @pytest.mark.parametrize("length", [1, 2, 4, 98])
    def test_regroup_rejects_partial_windows(self, length):
        with pytest.raises(ValueError):
            regroup_windows(list(range(length)))

    def test_flatten_rejects_wrong_width(self):
        with pytest.raises(ValueError):
            flatten_windows([("l", "c")])


class TestTickArrayBatcher:
    """Test the tick array read."""

    def test_single_read_regrouped(self, reader):
        windows = [tuple(_keys(3)) for _ in range(MAX_POOLS_PER_BATCH)]
        for left, current, right in windows:
            reader.accounts[current] = bytes(current)
            reader.accounts[right] = bytes(right)

        result = fetch_tick_array_accounts(reader, windows)

        assert len(reader.read_many_calls) == 1
        assert len(reader.read_many_calls[0]) == 99
        for (left, current, right), (raw_left, raw_current, raw_right) in zip(windows, result):
            assert raw_left is None
            assert raw_current == bytes(current)
            assert raw_right == bytes(right)

    def test_empty_input_makes_no_call(self, reader):
        assert TickArrayBatcher(reader).fetch([]) == []
        assert reader.call_count == 0

    def test_transport_failure_is_fatal(self, reader):
        reader.fail_read_many = lambda addresses: True

        with pytest.raises(TransportError) as exc_info:
            fetch_tick_array_accounts(reader, [tuple(_keys(3))])

        assert exc_info.value.stage == "tick_arrays"

    def test_too_many_addresses_rejected(self, reader):
        with pytest.raises(ValidationError):
            fetch_tick_array_accounts(reader, [tuple(_keys(3)) for _ in range(34)])

        assert reader.call_count == 0


class TestOracleBatcher:
    """Test the best-effort sparse oracle read."""

    def test_sparse_fetch_scatters_back(self, reader):
        """Only derivable addresses are read; results land at their pool's index."""
        first, third = _keys(2)
        reader.accounts[first] = b"oracle-0"
        reader.accounts[third] = b"oracle-2"

        result = fetch_oracle_accounts(reader, [first, None, third, None])

        assert result.success is True
        assert result.data == [b"oracle-0", None, b"oracle-2", None]
        assert reader.read_many_calls == [[first, third]]

    def test_no_derivable_address_skips_call(self, reader):
        result = OracleBatcher(reader).fetch([None, None])

        assert result.success is True
        assert result.data == [None, None]
        assert reader.call_count == 0

    def test_failure_degrades_to_all_none(self, reader, caplog):
        """A failed read never raises."""
        reader.fail_read_many = lambda addresses: True

        result = fetch_oracle_accounts(reader, _keys(3))

        assert result.success is False
        assert result.failed is True
        assert result.data == [None, None, None]
        assert "connection reset" in result.error
        assert "Failed to fetch oracle accounts" in caplog.text
