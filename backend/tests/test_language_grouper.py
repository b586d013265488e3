"""Grouping recipients by preferred language"""
from unittest.mock import MagicMock

from cra_workflow.domain.enums import Language
from cra_workflow.repositories.user_repo import UserRepository
from cra_workflow.services.language_grouper import LanguageGrouper


def test_groups_in_fixed_language_order(db, directory):
    grouper = LanguageGrouper(UserRepository(db))

    groups = grouper.group_by_language([
        "design-lead@example.com",
        "SALES@example.com",
        "costing@example.com",
        "stranger@example.com",
    ])

    assert groups == [
        (Language.EN, ["costing@example.com", "stranger@example.com"]),
        (Language.FR, ["SALES@example.com"]),
        (Language.ZH, ["design-lead@example.com"]),
    ]


def test_inactive_users_fall_back_to_english(db, directory):
    repo = UserRepository(db)
    user = directory["u-admin-2"].model_copy(update={"preferred_language": Language.ZH})
    repo.upsert_user(user)

    groups = LanguageGrouper(repo).group_by_language(["old-admin@example.com"])
    assert groups == [(Language.EN, ["old-admin@example.com"])]


def test_duplicates_and_blanks_removed(db, directory):
    grouper = LanguageGrouper(UserRepository(db))
    groups = grouper.group_by_language(["gm@example.com", " ", "GM@example.com", ""])
    assert groups == [(Language.EN, ["gm@example.com"])]


def test_empty_input():
    assert LanguageGrouper(MagicMock()).group_by_language([]) == []


def test_lookup_failure_puts_everyone_in_english():
    repo = MagicMock(spec=UserRepository)
    repo.get_language_preferences.side_effect = RuntimeError("directory down")

    groups = LanguageGrouper(repo).group_by_language(["a@example.com", "b@example.com"])
    assert groups == [(Language.EN, ["a@example.com", "b@example.com"])]


def test_unknown_stored_preference_is_english():
    repo = MagicMock(spec=UserRepository)
    repo.get_language_preferences.return_value = {"a@example.com": "de", "b@example.com": "FR"}

    groups = LanguageGrouper(repo).group_by_language(["a@example.com", "b@example.com"])
    assert groups == [(Language.EN, ["a@example.com"]), (Language.FR, ["b@example.com"])]
