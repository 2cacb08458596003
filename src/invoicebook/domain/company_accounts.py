"""Company to account code lookup."""

import json
import re
from pathlib import Path
from typing import Optional

from invoicebook.domain.errors import StorageError

COMPANY_ACCOUNTS_FILENAME = "company_accounts.json"

_LEGAL_SUFFIXES = (" gmbh", " ag", " kg", " ohg", " gbr", " ug", " e.k.", " ltd", " inc", " corp")
_WHITESPACE = re.compile(r"\s+")


def normalize_company_name(name: str) -> str:
    """Normalize a company name for use as a mapping key.

    Lowercases, collapses whitespace and drops one trailing legal suffix,
    so "ACME  GmbH" and "acme" share a key.
    """
    name = _WHITESPACE.sub(" ", (name or "").lower().strip())
    for suffix in _LEGAL_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)].strip()
            break
    return name


class CompanyAccountMap:
    """Remembered account codes per company, persisted as one JSON object."""

    def __init__(self, file_path: str | Path):
        """Initialize the map.

        Args:
            file_path: Path to the JSON file
        """
        self.file_path = Path(file_path)
        self._mapping: dict[str, int] = {}

    @classmethod
    def in_directory(cls, config_dir: str | Path) -> "CompanyAccountMap":
        return cls(Path(config_dir) / COMPANY_ACCOUNTS_FILENAME)

    def load(self) -> None:
        """Load the mapping from disk; a missing file leaves it empty.

        Raises:
            StorageError: If the file cannot be read or parsed
        """
        if not self.file_path.exists():
            self._mapping = {}
            return
        try:
            data = json.loads(self.file_path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            self._mapping = {str(key): int(value) for key, value in data.items()}
        except (OSError, TypeError, ValueError) as e:
            raise StorageError("read company accounts", self.file_path, e) from e

    def save(self) -> None:
        """Write the whole mapping to disk.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(
                json.dumps(self._mapping, indent=2, sort_keys=True, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageError("write company accounts", self.file_path, e) from e

    def get(self, company_name: str) -> Optional[int]:
        """Account code remembered for a company, or None."""
        return self._mapping.get(normalize_company_name(company_name))

    def set(self, company_name: str, account_code: int) -> None:
        """Remember an account code for a company (call save to persist)."""
        key = normalize_company_name(company_name)
        if key:
            self._mapping[key] = int(account_code)

    def suggest(self, company_name: str, default_account: int) -> tuple[int, bool]:
        """Suggest an account code for a company.

        Returns:
            Tuple of (account code, whether it came from the mapping)
        """
        code = self.get(company_name)
        if code is None:
            return default_account, False
        return code, True

    def __len__(self) -> int:
        return len(self._mapping)
