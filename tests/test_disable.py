from __future__ import annotations

import datetime as dt

from sample_models import Account, Note, Post, Tag, accounts
from slim_mvc.model.base import Model
from slim_mvc.model.errors import DISABLE_KEY


class LockedAccount(Model):
    __table__ = accounts

    def before_disable(self):
        return False


class FlakyDisableAccount(Model):
    __table__ = accounts

    def after_disable(self):
        return False


def _saved(record):
    assert record.save() is True
    return record


def test_boolean_disabled_column(db):
    acct = _saved(Account(db, account="alice"))

    assert acct.disable() is True
    assert acct.disabled is True
    assert Account.find(db, acct.identifier).disabled is True
    assert db.ledger().depth == 0


def test_disabled_at_column(db):
    note = _saved(Note(db, title="todo"))

    assert note.disable() is True
    assert isinstance(note.disabled_at, dt.datetime)

    reloaded = Note.find(db, note.identifier)
    assert reloaded.disabled_at is not None
    assert reloaded.deleted_at is None


def test_deleted_at_integer_column(db):
    post = _saved(Post(db, body="hello"))

    assert post.disable() is True
    assert isinstance(post.deleted_at, int)
    assert Post.find(db, post.identifier).deleted_at == post.deleted_at


def test_table_without_soft_delete_columns(db, monkeypatch):
    tag = _saved(Tag(db, label="python"))

    def no_execute(statement):
        raise AssertionError("no statement expected")

    monkeypatch.setattr(db.store(), "execute", no_execute)
    assert tag.disable() is False
    assert tag.errors == {DISABLE_KEY: ["Non-supported disable method"]}
    assert db.ledger().depth == 0


def test_new_record_cannot_be_disabled(db):
    acct = Account(db, account="bob")
    assert acct.disable() is False
    assert acct.errors == {}


def test_missing_row(db):
    ghost = Account.from_row(db, {"id": 77, "account": "ghost"})
    assert ghost.disable() is False
    assert ghost.errors == {DISABLE_KEY: ["Error occurred on disable"]}


def test_before_disable_failure(db):
    acct = _saved(Account(db, account="carol"))

    rec = LockedAccount.find(db, acct.identifier)
    assert rec.disable() is False
    assert rec.errors == {DISABLE_KEY: ["Callback error on before_disable"]}
    assert Account.find(db, acct.identifier).disabled is None


def test_after_disable_failure_rolls_back(db):
    acct = _saved(Account(db, account="dave"))

    rec = FlakyDisableAccount.find(db, acct.identifier)
    assert rec.disable() is False
    assert rec.errors == {DISABLE_KEY: ["Callback error on after_disable"]}
    assert rec.disabled is None
    assert Account.find(db, acct.identifier).disabled is None
    assert db.ledger().depth == 0


def test_disable_clears_cached_lookup(db):
    acct = _saved(Account(db, account="erin"))

    assert Account.find(db, acct.identifier).disabled is None
    assert "accounts" in db.store().cached_tables()

    assert acct.disable() is True
    assert "accounts" not in db.store().cached_tables()
    assert Account.find(db, acct.identifier).disabled is True
