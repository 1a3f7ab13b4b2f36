# test_config.py

import pytest
from solana.rpc.commitment import Confirmed, Finalized

import create_token
from token_launcher import EnvConfigSupplier, KeyFormatError, StaticConfigSupplier, ValidationError, resolve_network
from token_launcher.metadata import build_offchain_metadata


def test_devnet_profile():
    profile = resolve_network("devnet")
    assert profile.cluster_endpoint == "https://api.devnet.solana.com"
    assert profile.commitment == Confirmed
    assert profile.display_symbol == "SOL"
    assert profile.explorer_tx_url("abc") == "https://explorer.solana.com/tx/abc?cluster=devnet"


def test_mainnet_profile_and_alias():
    profile = resolve_network("mainnet-beta")
    assert profile is resolve_network("mainnet")
    assert profile.commitment == Finalized
    assert profile.explorer_address_url("Mint1") == "https://explorer.solana.com/address/Mint1"


def test_rpc_override_keeps_the_rest_of_the_profile():
    profile = resolve_network("mainnet", "https://rpc.example.com")
    assert profile.cluster_endpoint == "https://rpc.example.com"
    assert profile.commitment == Finalized


def test_unknown_network_is_a_programmer_error():
    with pytest.raises(ValueError):
        resolve_network("testnet")


def test_static_supplier_fills_defaults(secret_key):
    config = StaticConfigSupplier({"secret_key": secret_key}).load()
    assert config.network == "devnet"
    assert config.token.decimals == 9
    assert config.metadata.symbol == "MTK"
    assert config.metadata.royalty_basis_points == 500


def test_env_supplier_reads_environment(monkeypatch, tmp_path, secret_key):
    monkeypatch.setenv("SECRET_KEY", secret_key)
    monkeypatch.setenv("TOKEN_NAME", "EnvToken")
    monkeypatch.setenv("TOKEN_DECIMALS", "6")
    config = EnvConfigSupplier(overrides={"symbol": "ENV", "name": None}, dotenv_path=tmp_path / "missing.env").load()
    assert config.metadata.name == "EnvToken"
    assert config.metadata.symbol == "ENV"
    assert config.token.decimals == 6


def test_env_supplier_without_key(monkeypatch, tmp_path):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(KeyFormatError):
        EnvConfigSupplier(dotenv_path=tmp_path / "missing.env").load()


def test_offchain_metadata_document(secret_key):
    config = StaticConfigSupplier({"secret_key": secret_key}).load()
    assert build_offchain_metadata(config.metadata, config.image_uri) == {
        "name": "MyToken",
        "symbol": "MTK",
        "image": "https://example.com/image.png",
        "seller_fee_basis_points": 500,
    }


def test_cli_reports_bad_settings(monkeypatch, capsys, secret_key):
    monkeypatch.setattr(create_token, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setenv("SECRET_KEY", secret_key)
    monkeypatch.setattr("token_launcher.config.load_dotenv", lambda *args, **kwargs: False)
    assert create_token.main(["--decimals", "12", "--royalty", "99999"]) == 1
    out = capsys.readouterr().out
    assert "decimals" in out
    assert "royalty" in out
    assert secret_key not in out


def test_cli_success_prints_links(monkeypatch, capsys, secret_key):
    from conftest import FakeClient, no_sleep
    from token_launcher import launch_token

    monkeypatch.setattr(create_token, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setattr("token_launcher.config.load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setenv("SECRET_KEY", secret_key)
    monkeypatch.setattr(
        create_token, "launch_token", lambda config: launch_token(config, client=FakeClient(), sleep=no_sleep)
    )
    assert create_token.main([]) == 0
    out = capsys.readouterr().out
    assert "https://explorer.solana.com/tx/" in out
    assert "?cluster=devnet" in out
    assert secret_key not in out


def test_validation_error_message_lists_fields():
    with pytest.raises(ValidationError) as excinfo:
        StaticConfigSupplier({"decimals": "-1", "secret_key": "x"}).load()
    assert "decimals" in str(excinfo.value)
