"""Local private-key signer backed by eth-account."""

from typing import Any, Dict

from eth_account import Account

from .base import Signer


class LocalAccountSigner(Signer):
    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_transaction(self, tx: Dict[str, Any]) -> str:
        signed = self._account.sign_transaction(tx)
        return "0x" + signed.raw_transaction.hex().removeprefix("0x")
