"""
Unit tests for MailStore.

Every test runs against a real SQLite file under tmp_path.
"""

import threading

import pytest
from sqlalchemy import create_engine, text

from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Account
from neural_mail.persistence.exceptions import StorageError
from neural_mail.persistence.store import MailStore


class TestSchema:
    def test_init_is_idempotent(self, store, sample_messages):
        store.replace_all(sample_messages)

        store.init()
        store.init()

        assert store.count() == 3

    def test_init_adds_missing_category_column(self, tmp_path):
        path = tmp_path / "legacy.db"
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            conn.execute(text(
                "CREATE TABLE emails (id INTEGER PRIMARY KEY, subject TEXT NOT NULL, "
                "sender TEXT NOT NULL, date_str TEXT NOT NULL, body TEXT NOT NULL, "
                "has_attachment BOOLEAN NOT NULL)"
            ))
            conn.execute(text(
                "INSERT INTO emails VALUES (1, 'Old mail', 'a@b.c', 'Feb 1', 'Body', 0)"
            ))
        engine.dispose()

        store = MailStore(path)
        store.init()

        [message] = store.all()
        assert message.subject == "Old mail"
        assert message.category is Category.INBOX
        store.close()

    def test_other_migration_failures_raise(self, store, monkeypatch):
        monkeypatch.setattr(
            "neural_mail.persistence.store.COLUMN_MIGRATIONS",
            ["ALTER TABLE no_such_table ADD COLUMN flag TEXT"],
        )

        with pytest.raises(StorageError) as exc_info:
            store.init()

        assert exc_info.value.operation == "init"
        assert "no such table" in exc_info.value.message

    def test_unopenable_database_raises_storage_error(self, tmp_path):
        store = MailStore(tmp_path / "missing-dir" / "mail.db")

        with pytest.raises(StorageError) as exc_info:
            store.init()

        assert exc_info.value.operation == "init"
        assert "Storage error during init" in exc_info.value.message


class TestReplaceAll:
    def test_replaces_previous_contents(self, store, sample_messages, make_message):
        store.replace_all(sample_messages)

        stored = store.replace_all([make_message(10, subject="New")])

        assert stored == 1
        assert [m.id for m in store.all()] == [10]

    def test_failure_mid_batch_keeps_previous_set(self, store, sample_messages, make_message):
        store.replace_all(sample_messages)
        broken = [make_message(7), make_message(8), make_message(7)]

        with pytest.raises(StorageError):
            store.replace_all(broken)

        assert store.all() == sample_messages

    def test_empty_batch_clears_store(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert store.replace_all([]) == 0
        assert store.count() == 0


class TestQueries:
    def test_all_in_scan_order_with_limit(self, store, make_message):
        store.replace_all([make_message(i) for i in (3, 1, 2)])

        assert [m.id for m in store.all()] == [1, 2, 3]
        assert [m.id for m in store.all(limit=2)] == [1, 2]

    def test_get(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert store.get(2) == sample_messages[1]
        assert store.get(99) is None

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_search_equals_all(self, store, sample_messages, query):
        store.replace_all(sample_messages)

        assert store.search(query) == store.all()

    def test_search_matches_subject_sender_and_body(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert [m.id for m in store.search("invoice")] == [1]
        assert [m.id for m in store.search("alice@")] == [2]
        assert [m.id for m in store.search("everything")] == [3]

    def test_search_is_case_insensitive(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert [m.id for m in store.search("FLASH SALE")] == [3]

    def test_search_wildcards_match_literally(self, store, make_message):
        store.replace_all([
            make_message(1, body="Now 100% free"),
            make_message(2, body="Nothing special"),
            make_message(3, body="snake_case"),
            make_message(4, body="snakeXcase"),
        ])

        assert [m.id for m in store.search("%")] == [1]
        assert [m.id for m in store.search("snake_case")] == [3]

    def test_count(self, store, sample_messages):
        assert store.count() == 0
        store.replace_all(sample_messages)
        assert store.count() == 3


class TestCategories:
    def test_update_and_filter(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert store.update_category(1, Category.FINANCE) is True
        assert store.update_category(3, "Promotions") is True

        assert [m.id for m in store.by_category(Category.FINANCE)] == [1]
        assert [m.id for m in store.by_category("Promotions")] == [3]
        assert [m.id for m in store.by_category(Category.INBOX)] == [2]

    def test_update_unknown_id_is_noop(self, store, sample_messages):
        store.replace_all(sample_messages)

        assert store.update_category(404, Category.WORK) is False

        assert store.by_category(Category.WORK) == []
        assert store.count() == 3

    def test_invalid_label_rejected(self, store, sample_messages):
        store.replace_all(sample_messages)

        with pytest.raises(ValueError):
            store.update_category(1, "Spam")

        assert store.get(1).category is Category.INBOX

    def test_concurrent_updates_leave_one_valid_value(self, tmp_path, make_message):
        worker_store = MailStore(tmp_path / "shared.db")
        worker_store.init()
        user_store = MailStore(tmp_path / "shared.db")
        worker_store.replace_all([make_message(i) for i in range(1, 8)])

        barrier = threading.Barrier(2)
        errors = []

        def hammer(target: MailStore, label: Category) -> None:
            barrier.wait()
            try:
                for _ in range(25):
                    target.update_category(5, label)
            except StorageError as e:
                errors.append(e)

        threads = [
            threading.Thread(target=hammer, args=(worker_store, Category.WORK)),
            threading.Thread(target=hammer, args=(user_store, Category.SOCIAL)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert worker_store.get(5).category in (Category.WORK, Category.SOCIAL)
        ids = [m.id for m in worker_store.by_category("Work") + worker_store.by_category("Social")]
        assert ids.count(5) == 1
        assert worker_store.count() == 7

        worker_store.close()
        user_store.close()


class TestSettings:
    def test_get_default_and_upsert(self, store):
        assert store.get_setting("signature") is None
        assert store.get_setting("signature", "--") == "--"

        store.set_setting("signature", "Regards")
        store.set_setting("signature", "Cheers")

        assert store.get_setting("signature") == "Cheers"

    def test_sidebar_width(self, store):
        assert store.get_sidebar_width() == 570.0

        store.set_sidebar_width(320)

        assert store.get_sidebar_width() == 320.0

    def test_unparsable_sidebar_width_falls_back(self, store):
        store.set_setting("sidebar_width", "wide")

        assert store.get_sidebar_width() == 570.0

    def test_theme_mode(self, store):
        assert store.get_theme_mode() == "system"

        store.set_theme_mode("dark")

        assert store.get_theme_mode() == "dark"


class TestAccounts:
    def test_save_list_delete(self, store):
        account = Account(email="me@example.com", imap_host="imap.example.com", smtp_host="smtp.example.com")

        store.save_account(account)
        store.save_account(account.model_copy(update={"imap_port": 143}))

        [saved] = store.list_accounts()
        assert saved.imap_port == 143
        assert saved.smtp_host == "smtp.example.com"

        assert store.delete_account("me@example.com") is True
        assert store.delete_account("me@example.com") is False
        assert store.list_accounts() == []
