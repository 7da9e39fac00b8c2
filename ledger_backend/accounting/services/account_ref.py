# accounting/services/account_ref.py

"""
ACCOUNT REFERENCE

Posting lines name their account in exactly one canonical way:

    AccountRef.by_code("1001")   # chart code (what business adapters use)
    AccountRef.by_id(42)         # Account primary key (what reversals use)

AccountRef.coerce() is the single translation point for loose input
(str -> by_code, Account instance -> by_id). Refs are resolved once, by
account_resolver.resolve_accounts(), while the entry is being built.
"""

from __future__ import annotations

from dataclasses import dataclass

from accounting.services.exceptions import PostingValidationError


@dataclass(frozen=True)
class AccountRef:
    code: str | None = None
    account_id: int | None = None

    def __post_init__(self):
        if (self.code is None) == (self.account_id is None):
            raise PostingValidationError(
                "AccountRef needs exactly one of code / account_id"
            )

    @classmethod
    def by_code(cls, code) -> "AccountRef":
        code = str(code or "").strip()
        if not code:
            raise PostingValidationError("Account code is required")
        return cls(code=code)

    @classmethod
    def by_id(cls, account_id) -> "AccountRef":
        if isinstance(account_id, bool) or not isinstance(account_id, int):
            raise PostingValidationError(f"Invalid account id: {account_id!r}")
        return cls(account_id=account_id)

    @classmethod
    def coerce(cls, value) -> "AccountRef":
        if isinstance(value, AccountRef):
            return value
        if isinstance(value, str):
            return cls.by_code(value)

        # Account instances (duck-typed to keep models out of this module)
        pk = getattr(value, "pk", None)
        if pk is not None and hasattr(value, "code"):
            return cls.by_id(pk)

        raise PostingValidationError(
            f"Unsupported account reference: {value!r}. "
            "Use a code string, an Account, or AccountRef.by_code()/by_id()."
        )

    def __str__(self):
        if self.code is not None:
            return f"code={self.code}"
        return f"id={self.account_id}"
