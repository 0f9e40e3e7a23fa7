import pytest

from algorithms.blood_compatibility import (
    BLOOD_GROUPS,
    get_compatible_recipients,
    is_compatible,
)


@pytest.mark.parametrize('recipient', BLOOD_GROUPS)
def test_o_negative_gives_to_everyone(recipient):
    assert is_compatible('O-', recipient)


@pytest.mark.parametrize('donor', BLOOD_GROUPS)
def test_ab_positive_receives_from_everyone(donor):
    assert is_compatible(donor, 'AB+')


def test_ab_positive_gives_only_to_ab_positive():
    assert get_compatible_recipients('AB+') == ['AB+']
    assert not is_compatible('AB+', 'A+')


def test_direction_matters():
    assert is_compatible('A-', 'A+')
    assert not is_compatible('A+', 'A-')


def test_unknown_or_missing_group_is_incompatible():
    assert not is_compatible(None, 'A+')
    assert not is_compatible('C+', 'A+')
    assert get_compatible_recipients('C+') == []


def test_o_negative_receives_only_from_o_negative():
    assert [donor for donor in BLOOD_GROUPS if is_compatible(donor, 'O-')] == ['O-']


def test_donors_for_a_positive():
    donors = {donor for donor in BLOOD_GROUPS if is_compatible(donor, 'A+')}
    assert donors == {'O-', 'O+', 'A-', 'A+'}
