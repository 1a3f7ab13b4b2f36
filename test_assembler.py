# test_assembler.py

from decimal import Decimal

import pytest
from solana.rpc.commitment import Confirmed
from solders.keypair import Keypair
from solders.message import to_bytes_versioned

from token_launcher import RpcConnectionError, TokenMetadata, TokenSpec, assemble, build_instruction_set
from token_launcher.assembler import BlockReference, compile_and_sign

from conftest import LAST_VALID, FakeClient, connection_error


@pytest.fixture
def mint():
    return Keypair()


@pytest.fixture
def instruction_set(payer, mint):
    return build_instruction_set(
        TokenSpec(decimals=9, total_supply=Decimal("1000000")),
        TokenMetadata(name="MyToken", symbol="MTK", uri="https://example.com/token.json", royalty_basis_points=500),
        payer.pubkey(),
        mint.pubkey(),
        1_461_600,
    )


def test_assembled_transaction_has_payer_and_mint_signatures(client, payer, mint, instruction_set):
    assembled = assemble(client, payer, mint, instruction_set, Confirmed)
    assert len(assembled.signatures) == 2
    signed_bytes = to_bytes_versioned(assembled.message)
    signers = assembled.message.account_keys[:2]
    assert signers[0] == payer.pubkey()
    assert set(signers) == {payer.pubkey(), mint.pubkey()}
    for signer, signature in zip(signers, assembled.signatures):
        assert signature.verify(signer, signed_bytes)


def test_block_reference_is_captured(client, payer, mint, instruction_set):
    assembled = assemble(client, payer, mint, instruction_set, Confirmed)
    assert assembled.block_reference.last_valid_block_height == LAST_VALID
    assert assembled.message.recent_blockhash == client.blockhashes[-1]
    assert assembled.signature == assembled.signatures[0]


def test_message_keeps_instruction_order(client, payer, mint, instruction_set):
    message = assemble(client, payer, mint, instruction_set, Confirmed).message
    programs = [message.account_keys[ix.program_id_index] for ix in message.instructions]
    assert programs == [ix.program_id for ix in instruction_set]


def test_assembling_does_not_submit(client, payer, mint, instruction_set):
    assemble(client, payer, mint, instruction_set, Confirmed)
    assert client.sent == []
    assert client.calls == ["get_latest_blockhash"]


def test_signing_is_deterministic_for_one_block_reference(client, payer, mint, instruction_set):
    reference = BlockReference(blockhash=client.get_latest_blockhash().value.blockhash, last_valid_block_height=LAST_VALID)
    first = compile_and_sign(payer, mint, instruction_set, reference)
    second = compile_and_sign(payer, mint, instruction_set, reference)
    assert first.serialize() == second.serialize()


def test_blockhash_lookup_failure_is_retryable(payer, mint, instruction_set):
    class Unreachable(FakeClient):
        def get_latest_blockhash(self, commitment=None):
            raise connection_error("connection refused", self.get_latest_blockhash)

    with pytest.raises(RpcConnectionError) as excinfo:
        assemble(Unreachable(), payer, mint, instruction_set, Confirmed)
    assert excinfo.value.retryable
