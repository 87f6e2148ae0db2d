from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, MetaData, String, Table

from slim_mvc.model.base import Model

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account", String(50)),
    Column("email", String(200)),
    Column("age", Integer, nullable=True),
    Column("score", Float, nullable=True),
    Column("password", String(200), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=True),
    Column("disabled", Boolean, nullable=True),
)

notes = Table(
    "notes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200)),
    Column("disabled_at", DateTime, nullable=True),
    Column("deleted_at", DateTime, nullable=True),
)

posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("body", String(500)),
    Column("created_at", Integer, nullable=True),
    Column("deleted_at", Integer, nullable=True),
)

tags = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(50)),
)

groups = Table(
    "groups",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100)),
    Column("member_count", Integer, default=0),
)


class Account(Model):
    __table__ = accounts

    password_confirm = None
    roles = None


class Note(Model):
    __table__ = notes


class Post(Model):
    __table__ = posts


class Tag(Model):
    __table__ = tags


class Group(Model):
    __table__ = groups

    seen: list = []

    @staticmethod
    def on_account_save(account):
        Group.seen.append(("save", account.account))
        return True

    @staticmethod
    def on_account_rename(account):
        return False


class Organization(Model):
    __table__ = Table(
        "organizations",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(100)),
    )

    seen: list = []

    @classmethod
    def on_account_save(cls, account):
        cls.seen.append(("save", account.account))
        return True
