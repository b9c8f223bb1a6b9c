"""Tests for the Ledger: genesis, append, linkage, lookups and validation."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from starledger import Block, ChainInvalidError, GENESIS_PAYLOAD, Ledger
from starledger.encoding.codec import CodecType


def _append(ledger, owner, star):
    return ledger.append(Block.from_payload({"owner": owner, "star": star}, codec=ledger.codec))


class TestGenesis:
    def test_initialized_on_construction(self, ledger):
        assert ledger.height == 0
        assert ledger.get_chain_height() == 0
        assert len(ledger) == 1

    def test_genesis_block(self, ledger):
        genesis = ledger.get_block_by_height(0)
        assert genesis.height == 0
        assert genesis.previous_block_hash is None
        assert genesis.decode_body(ledger.codec) == GENESIS_PAYLOAD
        assert genesis.verify(ledger.hash_chain)

    def test_initialize_is_idempotent(self, ledger):
        genesis = ledger.get_block_by_height(0)
        ledger.initialize()
        ledger.initialize()
        assert ledger.height == 0
        assert ledger.get_block_by_height(0) == genesis


class TestAppend:
    def test_assigns_height_link_time_and_hash(self, ledger, clock):
        clock.advance(10)
        block = _append(ledger, "alice", "Vega")

        assert block.height == 1
        assert block.previous_block_hash == ledger.get_block_by_height(0).hash
        assert block.time == str(int(clock().timestamp() * 1000))
        assert block.hash == block.compute_hash(ledger.hash_chain)
        assert ledger.height == 1

    def test_caller_supplied_chain_fields_are_ignored(self, ledger):
        forged = Block.from_payload({"data": "x"}).model_copy(update={
            "height": 42,
            "previous_block_hash": "ff" * 32,
            "hash": "ee" * 32,
        })
        block = ledger.append(forged)
        assert block.height == 1
        assert block.previous_block_hash == ledger.get_block_by_height(0).hash
        assert block.verify(ledger.hash_chain)

    def test_links_hold_for_every_block(self, ledger):
        for i in range(10):
            _append(ledger, "alice", f"star-{i}")

        assert ledger.height == 10
        for i in range(1, ledger.height + 1):
            current = ledger.get_block_by_height(i)
            assert current.height == i
            assert current.previous_block_hash == ledger.get_block_by_height(i - 1).hash

    def test_committed_block_is_stored_instance(self, ledger):
        block = _append(ledger, "alice", "Vega")
        assert ledger.get_block_by_height(1) is block

    def test_refuses_append_to_corrupt_chain(self, ledger):
        _append(ledger, "alice", "Vega")
        _append(ledger, "alice", "Deneb")
        ledger.tamper_with_block_by_height(1)

        with pytest.raises(ChainInvalidError) as exc_info:
            _append(ledger, "alice", "Altair")

        assert exc_info.value.invalid_heights == [1, 2]
        assert ledger.height == 2
        assert len(ledger) == 3

    def test_duplicate_payloads_are_independent_blocks(self, ledger):
        first = _append(ledger, "alice", "Vega")
        second = _append(ledger, "alice", "Vega")
        assert first.hash != second.hash
        assert ledger.height == 2


class TestLookups:
    def test_get_block_by_hash(self, ledger):
        block = _append(ledger, "alice", "Vega")
        assert ledger.get_block_by_hash(block.hash) is block
        assert ledger.get_block_by_hash("missing") is None

    @pytest.mark.parametrize("height", [-1, 2, 100])
    def test_get_block_by_height_missing(self, ledger, height):
        _append(ledger, "alice", "Vega")
        assert ledger.get_block_by_height(height) is None

    def test_get_records_by_owner(self, ledger):
        _append(ledger, "alice", "Vega")
        _append(ledger, "bob", "Rigel")
        _append(ledger, "alice", "Deneb")

        assert ledger.get_records_by_owner("alice") == [
            {"owner": "alice", "star": "Vega"},
            {"owner": "alice", "star": "Deneb"},
        ]
        assert ledger.get_records_by_owner("bob") == [{"owner": "bob", "star": "Rigel"}]
        assert ledger.get_records_by_owner("carol") == []

    def test_get_records_by_owner_skips_undecodable_blocks(self, ledger):
        _append(ledger, "alice", "Vega")
        ledger.append(Block(body="zz-not-encoded"))
        _append(ledger, "alice", "Deneb")

        assert ledger.validate_chain() == []
        assert [r["star"] for r in ledger.get_records_by_owner("alice")] == ["Vega", "Deneb"]

    def test_get_records_by_owner_skips_non_dict_payloads(self, ledger):
        ledger.append(Block.from_payload(["alice"]))
        assert ledger.get_records_by_owner("alice") == []

    def test_genesis_is_excluded(self, clock, mocker):
        mocker.patch(
            "starledger.core.ledger.GENESIS_PAYLOAD",
            {"data": "Genesis Block", "owner": "alice"},
        )
        ledger = Ledger(clock=clock)
        assert ledger.get_block_by_height(0).decode_body(ledger.codec)["owner"] == "alice"

        assert ledger.get_records_by_owner("alice") == []
        _append(ledger, "alice", "Vega")
        assert ledger.get_records_by_owner("alice") == [{"owner": "alice", "star": "Vega"}]


class TestValidateChain:
    def test_untouched_chain_is_valid(self, ledger):
        for i in range(5):
            _append(ledger, "alice", i)
        assert ledger.validate_chain() == []

    def test_tampered_block_and_successor_reported(self, ledger):
        for i in range(3):
            _append(ledger, "alice", i)

        ledger.tamper_with_block_by_height(2)
        invalid = ledger.validate_chain()
        assert [b.height for b in invalid] == [2, 3]

    def test_tampered_tip_reports_only_tip(self, ledger):
        for i in range(3):
            _append(ledger, "alice", i)

        ledger.tamper_with_block_by_height(3)
        assert [b.height for b in ledger.validate_chain()] == [3]

    def test_tampered_genesis(self, ledger):
        _append(ledger, "alice", "Vega")
        ledger.tamper_with_block_by_height(0)
        assert [b.height for b in ledger.validate_chain()] == [0, 1]

    def test_tamper_missing_height(self, ledger):
        assert ledger.tamper_with_block_by_height(7) is None
        assert ledger.validate_chain() == []

    def test_stats_track_verification(self, ledger):
        _append(ledger, "alice", "Vega")
        ledger.validate_chain()
        stats = ledger.get_stats()
        assert stats.total_blocks == 2
        assert stats.height == 1
        assert stats.integrity_verified
        assert stats.last_verification_time is not None

        ledger.tamper_with_block_by_height(1)
        ledger.validate_chain()
        assert not ledger.get_stats().integrity_verified


class TestConfiguration:
    def test_alternate_hash_and_codec(self, clock):
        ledger = Ledger(hash_algorithm="sha3_256", codec="base64", clock=clock)
        block = _append(ledger, "alice", "Vega")

        assert ledger.codec.type == CodecType.BASE64
        assert ledger.get_stats().hash_algorithm == "sha3_256"
        assert block.decode_body(ledger.codec) == {"owner": "alice", "star": "Vega"}
        assert ledger.validate_chain() == []

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            Ledger(hash_algorithm="md5")

    def test_unsupported_codec(self):
        with pytest.raises(ValueError):
            Ledger(codec="rot13")


class TestConcurrency:
    def test_threaded_appends_are_serialized(self, ledger):
        with ThreadPoolExecutor(max_workers=8) as pool:
            blocks = list(pool.map(lambda i: _append(ledger, "alice", i), range(50)))

        assert sorted(b.height for b in blocks) == list(range(1, 51))
        assert ledger.height == 50
        assert ledger.validate_chain() == []

    @pytest.mark.asyncio
    async def test_async_appends_are_serialized(self, ledger):
        blocks = await asyncio.gather(*[
            ledger.append_async(Block.from_payload({"owner": "bob", "star": i}))
            for i in range(20)
        ])

        assert sorted(b.height for b in blocks) == list(range(1, 21))
        assert await ledger.validate_chain_async() == []
        assert len(await ledger.get_records_by_owner_async("bob")) == 20

    @pytest.mark.asyncio
    async def test_async_lookups(self, ledger):
        block = await ledger.append_async(Block.from_payload({"owner": "bob", "star": 1}))
        assert await ledger.get_block_by_hash_async(block.hash) is block
        assert await ledger.get_block_by_height_async(1) is block
