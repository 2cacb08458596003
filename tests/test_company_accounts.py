"""Tests for the company account map."""

import pytest

from invoicebook.domain.company_accounts import CompanyAccountMap, normalize_company_name
from invoicebook.domain.errors import StorageError


def test_normalize_company_name():
    assert normalize_company_name("ACME  GmbH") == "acme"
    assert normalize_company_name(" Beta Ltd ") == "beta"
    assert normalize_company_name("Gamma Holding") == "gamma holding"
    assert normalize_company_name("") == ""


def test_missing_file_is_empty(config_dir):
    accounts = CompanyAccountMap.in_directory(config_dir)
    accounts.load()
    assert len(accounts) == 0
    assert accounts.get("Acme") is None


def test_set_save_and_reload(config_dir):
    accounts = CompanyAccountMap.in_directory(config_dir)
    accounts.set("Acme GmbH", 4930)
    accounts.set("", 1)
    accounts.save()

    reloaded = CompanyAccountMap.in_directory(config_dir)
    reloaded.load()

    assert len(reloaded) == 1
    assert reloaded.get("acme") == 4930


def test_suggest(config_dir):
    accounts = CompanyAccountMap.in_directory(config_dir)
    accounts.set("Acme GmbH", 4930)

    assert accounts.suggest("ACME gmbh", 0) == (4930, True)
    assert accounts.suggest("Beta", 1200) == (1200, False)


def test_corrupt_file(config_dir):
    config_dir.mkdir()
    (config_dir / "company_accounts.json").write_text("[1, 2", encoding="utf-8")

    accounts = CompanyAccountMap.in_directory(config_dir)
    with pytest.raises(StorageError):
        accounts.load()
