"""Bank card service tests with fixtures declared in a YAML file."""
import pytest

pytestmark = pytest.mark.sqlfixture_declarations("bankcard_fixtures.yaml")


def test_find_by_number(bankcard_service):
    card = bankcard_service.find_by_number("0123456789")
    assert card is not None
    assert card["person_id"] == 1


def test_remove(bankcard_service):
    bankcard_service.remove(1)
    assert bankcard_service.find_by_number("0123456789") is None
