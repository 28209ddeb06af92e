import pytest

from miniblog import rid
from miniblog.rid import ResourceID


@pytest.mark.parametrize("name", ["user", "post"])
def test_resource_id_string(name):
    resource = ResourceID(name)
    assert str(resource) == name
    assert resource.new(1).partition("-")[0] == name


def test_new_has_prefix_and_is_unique():
    unique_id = ResourceID.USER.new(1)
    assert len(unique_id) > 0
    assert "user-" in unique_id
    another_id = ResourceID.USER.new(2)
    assert unique_id != another_id


@pytest.mark.parametrize("counter", [1, 123456, 0, 2**64 - 1])
def test_new_format(counter):
    result = ResourceID.USER.new(counter)
    assert result
    assert str(ResourceID.USER) + "-" in result
    prefix, _, code = result.partition("-")
    assert prefix == str(ResourceID.USER)
    assert len(code) == 6
    assert set(code) <= set(rid.DEFAULT_ALPHABET)


def test_post_prefix():
    assert ResourceID.POST.new(7).startswith("post-")


def test_new_uses_machine_salted_code():
    expected_code = rid.new_code(42, rid.DEFAULT_ALPHABET, 6, rid.salt())
    assert ResourceID.POST.new(42) == "post-" + expected_code


def test_new_code_distinct_for_many_counters():
    codes = {rid.new_code(counter, rid.DEFAULT_ALPHABET, 6, 12345) for counter in range(2000)}
    assert len(codes) == 2000


def test_new_code_is_a_permutation_of_small_space():
    codes = {rid.new_code(counter, "ab", 3, 99) for counter in range(8)}
    assert len(codes) == 8
    assert all(len(code) == 3 and set(code) <= {"a", "b"} for code in codes)


@pytest.mark.parametrize(
    "counter, chars, length",
    [(-1, "abc", 6), (1, "abc", 0), (1, "", 6), (1, "aab", 6)],
)
def test_new_code_rejects_bad_arguments(counter, chars, length):
    with pytest.raises(ValueError):
        rid.new_code(counter, chars, length, 0)


def test_read_machine_id_length():
    assert len(rid.read_machine_id()) == 3


def test_salt_is_stable_64_bit():
    value = rid.salt()
    assert 0 <= value < 2**64
    assert rid.salt() == value