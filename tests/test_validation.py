from __future__ import annotations

import re
from decimal import Decimal

from sample_models import Account, accounts
from slim_mvc.model.base import Model
from slim_mvc.model.errors import SAVE_KEY


class BoundedAccount(Model):
    __table__ = accounts

    def validate(self):
        self.validates_numericality_of("score", minimum=0, maximum=100)
        self.validates_length_of("age", maximum=200)


class UniqueAccount(Model):
    __table__ = accounts

    def validate(self):
        self.validates_uniqueness_of("account")


def test_presence_of_rejects_missing_and_blank(db):
    acct = Account(db, account="   ", email="")
    acct.validates_presence_of(["account", "email", "age"])

    assert acct.errors == {
        "account": ["account field is required"],
        "email": ["email field is required"],
        "age": ["age field is required"],
    }


def test_presence_of_accepts_zero_and_custom_message(db):
    acct = Account(db, account="alice", age=0)
    acct.validates_presence_of(["account", "age"])
    assert acct.has_error() is False

    acct.validates_presence_of("email", "%s is missing")
    assert acct.errors_for("email") == ["email is missing"]


def test_length_of_counts_characters(db):
    acct = Account(db, account="日本語", email="ab")
    acct.validates_length_of("account", minimum=3, maximum=3)
    assert acct.has_error("account") is False

    acct.validates_length_of("email", minimum=3)
    assert acct.errors_for("email") == ["email field incorrect size"]


def test_length_of_skips_unset_values(db):
    acct = Account(db)
    acct.validates_length_of(["account", "email"], minimum=1, maximum=2)
    acct.validates_size_of("password", maximum=1)
    assert acct.has_error() is False


def test_size_of_is_an_alias(db):
    acct = Account(db, account="toolongvalue")
    acct.validates_size_of("account", maximum=5)
    assert acct.errors_for("account") == ["account field incorrect size"]


def test_format_of(db):
    acct = Account(db, email="not-an-email", account="bob", age=1234)
    acct.validates_format_of("email", r"^[^@\s]+@[^@\s]+$")
    acct.validates_format_of("account", re.compile(r"^[a-z]+$"))
    acct.validates_format_of("age", r"^\d{4}$")

    assert acct.errors == {"email": ["email field invalid format"]}


def test_numericality_of(db):
    acct = Account(db, age="12", score="abc")
    acct.validates_numericality_of(["age", "score"])
    assert acct.errors == {"score": ["score fields is not a correct numerical value"]}


def test_numericality_of_bounds(db):
    acct = Account(db, age=17, score=99.5)
    acct.validates_numericality_of("age", minimum=18)
    acct.validates_numericality_of("score", minimum=0, maximum=100)
    assert acct.errors_for("age") == ["age fields is not a correct numerical value"]
    assert acct.has_error("score") is False


def test_numericality_of_rejects_booleans_and_non_finite(db):
    acct = Account(db, age=True, score="nan")
    acct.validates_numericality_of(["age", "score"])
    assert acct.has_error("age")
    assert acct.has_error("score")


def test_confirmation_of(db):
    ok = Account(db, password="s3cret", password_confirm="s3cret")
    ok.validates_confirmation_of("password")
    assert ok.has_error() is False

    mismatch = Account(db, password="s3cret", password_confirm="other")
    mismatch.validates_confirmation_of("password")
    assert mismatch.errors_for("password") == ["password field do not match confirmation value"]

    missing = Account(db, password="s3cret")
    missing.validates_confirmation_of("password")
    assert missing.has_error("password")


def test_confirmation_of_ignores_unchanged_values(db):
    loaded = Account.from_row(db, {"id": 1, "account": "x", "password": "hash"})
    loaded.validates_confirmation_of("password")
    assert loaded.has_error() is False


def test_uniqueness_of_single_and_composite(db):
    existing = Account(db, account="alice", email="a@example.com")
    assert existing.save() is True

    other = Account(db, account="alice", email="b@example.com")
    other.validates_uniqueness_of(["account", "email"])
    assert other.has_error() is False

    other.validates_uniqueness_of("account")
    assert other.errors == {"account": ["account field is duplicated"]}

    twin = Account(db, account="alice", email="a@example.com")
    twin.validates_uniqueness_of(["account", "email"])
    assert twin.errors == {"email": ["account,email field is duplicated"]}


def test_uniqueness_of_excludes_own_row(db):
    existing = Account(db, account="carol", email="c@example.com")
    assert existing.save() is True

    reloaded = Account.find(db, existing.identifier)
    reloaded.validates_uniqueness_of(["account", "email"])
    assert reloaded.has_error() is False


def test_uniqueness_of_skips_unset_keys(db):
    acct = Account(db)
    acct.validates_uniqueness_of(["account", "email"])
    acct.validates_uniqueness_of([])
    assert acct.has_error() is False


def test_duplicate_blocks_the_write(db):
    assert Account(db, account="dup", email="one@example.com").save() is True
    assert Account(db, account="dup", email="two@example.com").save() is True

    third = UniqueAccount(db, account="dup", email="three@example.com")
    assert third.save() is False
    assert third.errors == {
        "account": ["account field is duplicated"],
        SAVE_KEY: ["Validation error"],
    }
    assert third.is_new is True
    assert Account.query(db).where(account="dup").count() == 2


def test_non_finite_numbers_are_invalid(db):
    for bad in (float("nan"), float("inf"), float("-inf"), Decimal("NaN"), "Infinity"):
        acct = Account(db, score=bad)
        acct.validates_numericality_of("score")
        acct.validates_numericality_of("score", minimum=0, maximum=100)
        assert acct.errors_for("score") == ["score fields is not a correct numerical value"] * 2, bad


def test_non_finite_sizes_are_out_of_range(db):
    for bad in (float("nan"), float("inf")):
        acct = Account(db, score=bad)
        acct.validates_length_of("score", maximum=10)
        acct.validates_size_of("score")
        assert acct.errors_for("score") == ["score field incorrect size"] * 2, bad


def test_save_with_non_finite_values_reports_errors(db):
    rec = BoundedAccount(db, score=float("nan"), age=float("inf"))
    assert rec.save() is False
    assert rec.errors == {
        "score": ["score fields is not a correct numerical value"],
        "age": ["age field incorrect size"],
        SAVE_KEY: ["Validation error"],
    }
    assert Account.query(db).count() == 0
