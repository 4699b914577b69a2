"""Tests for the config key table and typed get/set/list."""

import pytest

from rcpctl.core.document import ConfigDocument
from rcpctl.core.keys import (
    CONFIG_KEYS,
    KEYS,
    SECRET_SET,
    SECRET_UNSET,
    changed_values,
    get_value,
    known_keys,
    list_values,
    lookup,
    set_value,
)
from rcpctl.errors import UnknownKeyError, ValidationError

VALID_VALUES = {
    "host": ("rcp.example.com", "rcp.example.com"),
    "port": ("8080", "8080"),
    "use_tls": ("true", "true"),
    "verify_cert": ("false", "false"),
    "username": ("alice", "alice"),
    "token": ("tok-123", "tok-123"),
    "secret": ("hunter2", "hunter2"),
    "log_level": ("DEBUG", "debug"),
    "format": ("json", "json"),
    "color": ("false", "false"),
    "json_output": ("true", "true"),
    "quiet": ("true", "true"),
    "timeout_seconds": ("45", "45"),
}


class TestKeyTable:
    """Tests for the shape of the key table."""

    def test_every_key_has_a_sample(self):
        assert set(VALID_VALUES) == set(KEYS)

    def test_get_and_set_accept_the_same_names(self):
        doc = ConfigDocument()
        for key in known_keys():
            get_value(doc, key)
            descriptor = lookup(key)
            set_value(doc, key, VALID_VALUES[descriptor.name][0])

    def test_list_covers_every_key(self):
        listed = [entry.key for entry in list_values(ConfigDocument())]
        assert listed == [d.name for d in CONFIG_KEYS]

    def test_list_in_section_order(self):
        sections = [entry.section for entry in list_values(ConfigDocument())]
        order = ["connection", "auth", "output", "other"]
        assert sections == sorted(sections, key=order.index)


class TestSetGet:
    """Tests for set_value and get_value."""

    @pytest.mark.parametrize("key", sorted(VALID_VALUES))
    def test_set_then_get(self, key):
        raw, canonical = VALID_VALUES[key]
        doc = set_value(ConfigDocument(), key, raw)
        assert get_value(doc, key) == canonical

    def test_set_does_not_modify_input(self):
        doc = ConfigDocument()
        updated = set_value(doc, "port", "6000")
        assert doc.connection.port == 5000
        assert updated.connection.port == 6000

    def test_defaults(self):
        doc = ConfigDocument()
        assert get_value(doc, "host") == "localhost"
        assert get_value(doc, "port") == "5000"
        assert get_value(doc, "format") == "human"
        assert get_value(doc, "color") == "true"
        assert get_value(doc, "timeout_seconds") == "30"
        assert get_value(doc, "username") == ""

    def test_empty_string_clears_optional(self):
        doc = set_value(ConfigDocument(), "username", "alice")
        doc = set_value(doc, "username", "")
        assert doc.auth.username is None

    def test_port_out_of_range(self):
        doc = ConfigDocument()
        with pytest.raises(ValidationError) as exc_info:
            set_value(doc, "port", "99999")

        assert exc_info.value.message == "port must be a valid number between 1-65535"
        assert exc_info.value.exit_code == 2
        assert doc == ConfigDocument()

    @pytest.mark.parametrize(
        "key,raw",
        [
            ("port", "0"),
            ("port", "-1"),
            ("port", "http"),
            ("port", ""),
            ("host", ""),
            ("host", "two words"),
            ("use_tls", "yes"),
            ("use_tls", "True"),
            ("timeout_seconds", "0"),
            ("timeout_seconds", "2.5"),
            ("log_level", "verbose"),
            ("format", "yaml"),
        ],
    )
    def test_invalid_values_rejected(self, key, raw):
        doc = set_value(ConfigDocument(), "username", "alice")
        before = get_value(doc, key)

        with pytest.raises(ValidationError) as exc_info:
            set_value(doc, key, raw)

        assert exc_info.value.key == key
        assert get_value(doc, key) == before
        assert get_value(doc, key) == get_value(ConfigDocument(), key)
        assert doc.auth.username == "alice"

    def test_unknown_key(self):
        with pytest.raises(UnknownKeyError) as exc_info:
            get_value(ConfigDocument(), "nonexistent")

        assert exc_info.value.exit_code == 2
        assert exc_info.value.to_dict()["type"] == "unknown_key"

        with pytest.raises(UnknownKeyError):
            set_value(ConfigDocument(), "nonexistent", "x")

    @pytest.mark.parametrize(
        "alias,name,raw",
        [("json", "json_output", "true"), ("timeout", "timeout_seconds", "12"), ("psk", "secret", "abc")],
    )
    def test_legacy_alias(self, alias, name, raw, caplog):
        doc = set_value(ConfigDocument(), alias, raw)

        assert get_value(doc, name) == raw
        assert get_value(doc, alias) == raw
        assert f"legacy alias for '{name}'" in caplog.text


class TestListValues:
    """Tests for list_values."""

    def test_secrets_masked(self):
        doc = set_value(ConfigDocument(), "token", "tok-123")

        values = {entry.key: entry.value for entry in list_values(doc)}

        assert values["token"] == SECRET_SET
        assert values["secret"] == SECRET_UNSET
        assert "tok-123" not in values.values()

    def test_both_secrets_masked(self):
        doc = set_value(ConfigDocument(), "token", "tok-123")
        doc = set_value(doc, "psk", "hunter2")

        entries = list_values(doc)
        values = {entry.key: entry.value for entry in entries}

        assert values["token"] == SECRET_SET
        assert values["secret"] == SECRET_SET
        rendered = " ".join(entry.value for entry in entries)
        assert "tok-123" not in rendered
        assert "hunter2" not in rendered

    def test_non_secrets_rendered(self):
        doc = set_value(ConfigDocument(), "username", "alice")
        values = {entry.key: entry.value for entry in list_values(doc)}
        assert values["username"] == "alice"
        assert values["use_tls"] == "false"


class TestChangedValues:
    """Tests for changed_values."""

    def test_reports_only_changed_keys(self):
        before = ConfigDocument()
        after = set_value(set_value(before, "port", "6000"), "quiet", "true")

        changes = changed_values(before, after)

        assert [(entry.section, entry.key, entry.value) for entry in changes] == [
            ("connection", "port", "6000"),
            ("output", "quiet", "true"),
        ]

    def test_identical_documents(self):
        assert changed_values(ConfigDocument(), ConfigDocument()) == []

    def test_rotated_secret_is_reported_masked(self):
        before = set_value(ConfigDocument(), "secret", "old-secret")
        after = set_value(before, "secret", "new-secret")

        changes = changed_values(before, after)

        assert [(entry.key, entry.value) for entry in changes] == [("secret", SECRET_SET)]

    def test_cleared_secret(self):
        before = set_value(ConfigDocument(), "token", "tok-123")
        after = set_value(before, "token", "")

        assert [(entry.key, entry.value) for entry in changed_values(before, after)] == [("token", SECRET_UNSET)]
