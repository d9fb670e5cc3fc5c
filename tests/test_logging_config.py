import io
import json
import logging

import pytest
import structlog

from covault.core import TransactionCoordinator
from covault.logging_config import setup_logging, vault_context, vault_operation

from fakes import OWNER_A, OWNER_B, RECIPIENT, FakeSigner, make_chain


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()


class Vault:
    wallet_address = "0x00000000000000000000000000000000000000a1"

    @vault_operation
    async def execute(self, tx_hash):
        return structlog.contextvars.get_contextvars()

    @vault_operation
    async def fail(self):
        raise RuntimeError("boom")


def test_debug_uses_console_renderer():
    setup_logging("DEBUG")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    formatter = root.handlers[0].formatter
    assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
    assert any(isinstance(p, structlog.dev.ConsoleRenderer) for p in formatter.processors)


def test_default_level_renders_json():
    setup_logging("warning")

    root = logging.getLogger()
    assert root.level == logging.WARNING
    formatter = root.handlers[0].formatter
    assert any(isinstance(p, structlog.processors.JSONRenderer) for p in formatter.processors)


def test_http_clients_are_quieted():
    setup_logging("DEBUG")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


# =============================================================================
# Vault context
# =============================================================================

class TestVaultContext:
    """Coordinator operations bind the vault they act on."""

    def test_none_values_are_dropped(self):
        with vault_context(wallet="0xabc", module=None):
            assert structlog.contextvars.get_contextvars() == {"wallet": "0xabc"}

        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_operation_binds_wallet_and_hash(self):
        context = await Vault().execute("0x01")

        assert context == {"wallet": Vault.wallet_address, "operation": "execute", "hash": "0x01"}
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_hash_passed_by_keyword(self):
        context = await Vault().execute(tx_hash="0x02")

        assert context["hash"] == "0x02"

    @pytest.mark.asyncio
    async def test_context_is_cleared_on_error(self):
        with pytest.raises(RuntimeError):
            await Vault().fail()

        assert structlog.contextvars.get_contextvars() == {}

    def test_wrapped_name_is_kept(self):
        assert Vault.execute.__name__ == "execute"

    @pytest.mark.asyncio
    async def test_coordinator_lines_carry_the_vault(self):
        stream = io.StringIO()
        chain = make_chain()
        proposer = TransactionCoordinator(chain, chain.wallet_address, FakeSigner(OWNER_A))
        tx_hash = await proposer.propose(RECIPIENT, 1)
        await proposer.approve(tx_hash)
        await TransactionCoordinator(chain, chain.wallet_address, FakeSigner(OWNER_B)).approve(tx_hash)

        setup_logging("INFO", json_logs=True, stream=stream)
        await proposer.execute(tx_hash)

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        executing = next(line for line in lines if line["event"].startswith("Executing"))
        assert executing["wallet"] == proposer.wallet_address
        assert executing["operation"] == "execute"
        assert executing["hash"] == tx_hash
        assert executing["logger"] == "covault.core.transactions"
        assert "module" not in executing
