import pytest

from mortgage_calc_web.state_store import StateStore, UnknownRecordError


@pytest.fixture
def store():
    return StateStore("sqlite://")


class TestStateStore:
    def test_save_and_load(self, store, mortgage_data):
        store.save("user-1", "mortgageData", mortgage_data)
        assert store.load("user-1", "mortgageData") == mortgage_data

    def test_save_overwrites(self, store):
        store.save("user-1", "investments", [1])
        store.save("user-1", "investments", [2])
        assert store.load("user-1", "investments") == [2]

    def test_missing_record_returns_default(self, store):
        assert store.load("user-1", "timelineEvents", []) == []
        assert store.load("user-1", "mortgageData") is None

    def test_records_are_per_user(self, store):
        store.save("user-1", "investments", [1])
        assert store.load("user-2", "investments") is None

    def test_load_all_defaults(self, store):
        assert store.load_all("user-1") == {
            "mortgageData": None,
            "timelineEvents": [],
            "investments": [],
        }

    def test_records_are_independent(self, store, mortgage_data):
        store.save("user-1", "mortgageData", mortgage_data)
        store.save("user-1", "timelineEvents", [{"id": 1}])
        store.save("user-1", "timelineEvents", [])
        assert store.load("user-1", "mortgageData") == mortgage_data

    def test_unknown_key(self, store):
        with pytest.raises(UnknownRecordError):
            store.save("user-1", "settings", {})
        with pytest.raises(UnknownRecordError):
            store.load("user-1", "settings")

    def test_empty_token_is_ignored(self, store):
        store.save("", "investments", [1])
        assert store.load("", "investments") is None

    def test_clear(self, store, mortgage_data):
        store.save("user-1", "mortgageData", mortgage_data)
        store.save("user-2", "mortgageData", mortgage_data)
        store.clear("user-1")
        assert store.load("user-1", "mortgageData") is None
        assert store.load("user-2", "mortgageData") == mortgage_data


class TestReplaceAll:
    def test_replaces_wholesale(self, store, mortgage_data):
        store.save("user-1", "mortgageData", mortgage_data)
        store.save("user-1", "investments", [{"name": "old"}])
        store.replace_all(
            "user-1",
            {"mortgageData": None, "timelineEvents": [{"id": 1}], "investments": []},
        )
        assert store.load_all("user-1") == {
            "mortgageData": None,
            "timelineEvents": [{"id": 1}],
            "investments": [],
        }

    def test_unknown_key_applies_nothing(self, store, mortgage_data):
        store.save("user-1", "mortgageData", mortgage_data)
        with pytest.raises(UnknownRecordError):
            store.replace_all("user-1", {"timelineEvents": [], "bogus": 1})
        assert store.load("user-1", "mortgageData") == mortgage_data
