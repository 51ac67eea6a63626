from __future__ import annotations

import pytest

from msgsync.catalog.discovery import FileMatcher
from msgsync.catalog.state import (
    Compiled,
    GranularStates,
    SharedStates,
    SourceLocaleConflictError,
    default_load_id,
)
from msgsync.catalog.storage import MemoryCatalogStorage
from msgsync.compiler.elements import Text

MAIN = FileMatcher(include=("src/**/*.py",))
ADMIN = FileMatcher(include=("admin/**/*.py",))


def test_first_agent_owns_state_and_siblings_register_matchers() -> None:
    states = SharedStates()
    storage = MemoryCatalogStorage("locales")

    owner_state = states.get_or_add(storage, "main", "en", MAIN)
    sibling_state = states.get_or_add(storage, "admin", "en", ADMIN)

    assert sibling_state is owner_state
    assert owner_state.owner_key == "main"
    assert owner_state.is_owner("main") is True
    assert owner_state.is_owner("admin") is False
    assert owner_state.other_file_matchers == {"admin": ADMIN}
    assert len(states) == 1
    assert states.get("locales") is owner_state


def test_distinct_storage_keys_get_distinct_states() -> None:
    states = SharedStates()

    first = states.get_or_add(MemoryCatalogStorage("a"), "main", "en", MAIN)
    second = states.get_or_add(MemoryCatalogStorage("b"), "admin", "fr", ADMIN)

    assert first is not second
    assert len(states) == 2


def test_conflicting_source_locale_raises() -> None:
    states = SharedStates()
    storage = MemoryCatalogStorage("locales")
    states.get_or_add(storage, "main", "en", MAIN)

    with pytest.raises(SourceLocaleConflictError) as excinfo:
        states.get_or_add(storage, "admin", "fr", ADMIN)

    assert excinfo.value.storage_key == "locales"
    assert excinfo.value.expected == "en"
    assert excinfo.value.found == "fr"
    assert "'en' != 'fr'" in str(excinfo.value)


def test_default_load_id_replaces_non_word_runs() -> None:
    assert default_load_id("src/pages/home.py") == "src_pages_home_py"
    assert default_load_id("a -- b.py") == "a_b_py"


def test_files_with_the_same_load_id_share_one_state() -> None:
    states = GranularStates(load_id=lambda filename: filename.split("/")[0])

    first = states.by_file_create("shop/cart.py", ("en", "es"))
    second = states.by_file_create("shop/checkout.py", ("en", "es"))
    third = states.by_file_create("blog/post.py", ("en", "es"))

    assert first is second
    assert third is not first
    assert sorted(states.by_id) == ["blog", "shop"]
    assert set(first.compiled) == {"en", "es"}


def test_compiled_set_grows_with_holes() -> None:
    compiled = Compiled()

    compiled.set(2, Text("c"))
    compiled.set(0, Text("a"))

    assert compiled.items == [Text("a"), None, Text("c")]
    assert compiled.to_json() == ["a", None, "c"]
