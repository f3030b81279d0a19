import pytest

from app.services.catalog.category_paths import (
    CategoryIndex, CategoryRecord, MissingParent, build_best_category_path,
)


CATEGORIES = [
    {"id": 24, "name": "Attachments", "parent_id": 0},
    {"id": 25, "name": "Buckets", "parent_id": 24},
    {"id": 26, "name": "Smooth Buckets", "parent_id": 25},
    {"id": 30, "name": "Shop All", "parent_id": 0},
    {"id": 31, "name": "Everything", "parent_id": 30},
    {"id": 32, "name": "Deep Bucket", "parent_id": 31},
    {"id": 33, "name": "Deeper", "parent_id": 32},
]


@pytest.fixture()
def index() -> CategoryIndex:
    return CategoryIndex(CATEGORIES, missing_parents={})


def test_builds_root_first_path(index):
    assert index.build_path(26) == "Attachments > Buckets > Smooth Buckets"


def test_root_category_is_just_its_name(index):
    assert index.build_path(24) == "Attachments"


def test_deepest_candidate_wins(index):
    assert index.best_path([24, 26, 25]) == "Attachments > Buckets > Smooth Buckets"


def test_catch_all_bucket_loses_even_when_deeper():
    shop_all = CategoryIndex(CATEGORIES + [{"id": 40, "name": "Shop All", "parent_id": 33}], missing_parents={})
    assert shop_all.best_path([40, 25]) == "Attachments > Buckets"


def test_ties_keep_first_encountered():
    cats = [
        {"id": 1, "name": "Tools", "parent_id": 0},
        {"id": 2, "name": "Parts", "parent_id": 0},
    ]
    assert build_best_category_path(cats, [2, 1], missing_parents={}) == "Parts"
    assert build_best_category_path(cats, [1, 2], missing_parents={}) == "Tools"


def test_unknown_candidates_are_skipped(index):
    assert index.best_path([999, 25]) == "Attachments > Buckets"


def test_nothing_resolvable_gives_empty_string(index):
    assert index.best_path([]) == ""
    assert index.best_path([999]) == ""


def test_missing_parent_table_bridges_gaps():
    cats = [
        {"id": 24, "name": "Attachments", "parent_id": 0},
        {"id": 500, "name": "Heavy Duty", "parent_id": 141},
    ]
    # default table: 141 Smooth Buckets -> 136 Mini Bobcat -> 24 Attachments
    index = CategoryIndex(cats)
    assert index.build_path(500) == "Attachments > Mini Bobcat > Smooth Buckets > Heavy Duty"


def test_unbridgeable_parent_gives_partial_path():
    index = CategoryIndex([{"id": 7, "name": "Orphan", "parent_id": 12345}], missing_parents={})
    assert index.build_path(7) == "Orphan"


def test_cycle_terminates():
    cats = [
        {"id": 1, "name": "A", "parent_id": 2},
        {"id": 2, "name": "B", "parent_id": 1},
    ]
    index = CategoryIndex(cats, missing_parents={})
    assert index.build_path(1) == "B > A"


def test_accepts_records_and_custom_fallbacks():
    cats = [CategoryRecord(10, "Leaf", 99)]
    index = CategoryIndex(cats, missing_parents={99: MissingParent("Hidden Root")})
    assert index.best_path([10]) == "Hidden Root > Leaf"
    assert 10 in index and 99 not in index
    assert len(index) == 1


def test_all_paths_covers_every_category(index):
    paths = index.all_paths()
    assert set(paths) == {c["id"] for c in CATEGORIES}
    assert paths[33] == "Shop All > Everything > Deep Bucket > Deeper"


STORE = [
    {"id": 23, "name": "Shop All", "parent_id": None},
    {"id": 24, "name": "Attachments", "parent_id": None},
    {"id": 58, "name": "Buckets", "parent_id": 24},
    {"id": 60, "name": "Smooth Buckets", "parent_id": 58},
]


def test_store_categories_prefer_deep_path_over_shop_all():
    assert build_best_category_path(STORE, [23, 24, 60, 58]) == "Attachments > Buckets > Smooth Buckets"


def test_store_categories_bridge_missing_quick_attach_parent():
    cats = [dict(c, parent_id=129) if c["id"] == 58 else c for c in STORE]
    fallbacks = {129: MissingParent("Universal Quick Attach", 24)}
    assert build_best_category_path(cats, [23, 24, 60, 58], missing_parents=fallbacks) == (
        "Attachments > Universal Quick Attach > Buckets > Smooth Buckets"
    )


def test_empty_names_stay_in_the_path():
    cats = [
        {"id": 1, "name": "", "parent_id": 0},
        {"id": 2, "name": "Leaf", "parent_id": 1},
    ]
    index = CategoryIndex(cats, missing_parents={})
    assert index.build_path(2) == " > Leaf"
    assert index.best_path([2]) == " > Leaf"
