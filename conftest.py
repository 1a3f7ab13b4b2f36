# conftest.py

from types import SimpleNamespace

import base58
import httpx
import pytest
from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

MINT_RENT = 1_461_600
ACCOUNT_RENT = 2_039_280
FEE = 10_000
LAST_VALID = 300


def resp(value):
    return SimpleNamespace(value=value)


class FakeClient:
    """In-memory stand-in for solana.rpc.api.Client.

    ``landings`` says, per submitted transaction, whether it ever lands. A
    transaction that never lands sees the block height jump past its ceiling.
    """

    def __init__(self, balance=5_000_000_000, landings=None, status_err=None, logs=None):
        self.balance = balance
        self.landings = list(landings) if landings is not None else [True]
        self.status_err = status_err
        self.logs = logs if logs is not None else ["Program log: Instruction: MintTo"]
        self.sent = []
        self.calls = []
        self.blockhashes = []
        self.send_error = None
        self.poll_failures = 0
        self.polls_before_landing = 1
        self._polls = 0

    def _record(self, name):
        self.calls.append(name)

    def _landing(self):
        index = len(self.sent) - 1
        return self.landings[index] if index < len(self.landings) else self.landings[-1]

    def get_minimum_balance_for_rent_exemption(self, size, commitment=None):
        self._record("get_minimum_balance_for_rent_exemption")
        return resp(MINT_RENT if size == 82 else ACCOUNT_RENT)

    def get_latest_blockhash(self, commitment=None):
        self._record("get_latest_blockhash")
        blockhash = Hash.new_unique()
        self.blockhashes.append(blockhash)
        return resp(SimpleNamespace(blockhash=blockhash, last_valid_block_height=LAST_VALID))

    def get_fee_for_message(self, message, commitment=None):
        self._record("get_fee_for_message")
        return resp(FEE)

    def get_balance(self, pubkey, commitment=None):
        self._record("get_balance")
        return resp(self.balance)

    def send_raw_transaction(self, txn, opts=None):
        self._record("send_raw_transaction")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(txn)
        self._polls = 0
        return resp(VersionedTransaction.from_bytes(txn).signatures[0])

    def get_block_height(self, commitment=None):
        self._record("get_block_height")
        return resp(LAST_VALID - 10 if self._landing() else LAST_VALID + 1)

    def get_signature_statuses(self, signatures, search_transaction_history=False):
        self._record("get_signature_statuses")
        if self.poll_failures:
            self.poll_failures -= 1
            raise connection_error("connection reset", self.get_signature_statuses)
        self._polls += 1
        if not self._landing() or self._polls <= self.polls_before_landing:
            return resp([None])
        return resp([SimpleNamespace(err=self.status_err, confirmation_status=TransactionConfirmationStatus.Confirmed)])

    def get_transaction(self, signature, commitment=None, max_supported_transaction_version=None):
        self._record("get_transaction")
        meta = SimpleNamespace(fee=5000, log_messages=self.logs)
        return resp(SimpleNamespace(block_time=1_700_000_000, transaction=SimpleNamespace(meta=meta)))


def connection_error(message, func):
    """Transport failure as solana-py raises it: the httpx error plus the client method that hit it."""
    request = SimpleNamespace()
    return SolanaRpcException(httpx.ConnectError(message), func, getattr(func, "__self__", None), request)


def rpc_error(message, logs=None):
    return RPCException(SimpleNamespace(message=message, data=SimpleNamespace(logs=logs or [])))


def no_sleep(_seconds):
    pass


@pytest.fixture
def payer():
    return Keypair()


@pytest.fixture
def secret_key(payer):
    return base58.b58encode(bytes(payer)).decode()


@pytest.fixture
def raw_config(secret_key):
    return {
        "network": "devnet",
        "decimals": "9",
        "supply": "1000000",
        "name": "MyToken",
        "symbol": "MTK",
        "image_uri": "https://example.com/image.png",
        "royalty": "500",
        "secret_key": secret_key,
    }


@pytest.fixture
def client():
    return FakeClient()
