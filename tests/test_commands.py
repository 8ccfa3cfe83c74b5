import pytest

from ordtool.commands import (
    CommandError,
    epochs,
    height_range,
    name_to_ordinal,
    supply,
    traits,
)

LAST = 2_099_999_997_689_999
SUPPLY_VALUE = 2_099_999_997_690_000
ILLUSIVE = 623_624_999_999_999


def _traits(n):
    return set(traits(n))


def test_epochs_known_values():
    result = epochs()
    assert len(result) == 34
    assert result[0] == 0
    assert result[1] == 1_050_000_000_000_000
    assert result[2] == 1_575_000_000_000_000
    assert result[3] == 1_837_500_000_000_000
    assert result[10] == 2_097_949_218_750_000
    assert result[28] == 2_099_999_990_550_000
    assert result[30] == 2_099_999_996_220_000
    assert result[-1] == SUPPLY_VALUE


def test_epochs_strictly_increasing():
    result = epochs()
    assert all(a < b for a, b in zip(result, result[1:]))


@pytest.mark.parametrize("name", ["", "0", "aB"])
def test_invalid_name(name):
    with pytest.raises(CommandError, match="Invalid name"):
        name_to_ordinal(name)


@pytest.mark.parametrize(
    "name, expected",
    [("a", LAST), ("b", 2_099_999_997_689_998), ("nvtdijuwxlp", 0)],
)
def test_name_to_ordinal(name, expected):
    assert name_to_ordinal(name) == expected


def test_name_out_of_range():
    with pytest.raises(CommandError, match="Name out of range"):
        name_to_ordinal("nvtdijuwxlr")


@pytest.mark.parametrize(
    "height, expected",
    [
        (0, (0, 5_000_000_000)),
        (1, (5_000_000_000, 10_000_000_000)),
        (6929999, (LAST, SUPPLY_VALUE)),
        (6930000, (SUPPLY_VALUE, SUPPLY_VALUE)),
    ],
)
def test_height_range(height, expected):
    assert height_range(height) == expected


@pytest.mark.parametrize(
    "height, expected",
    [
        (0, ("nvtdijuwxlp", "nvtcsezkbth")),
        (6929998, ("b", "a")),
        (6929999, ("a", "")),
        (6930000, ("", "")),
    ],
)
def test_height_range_names(height, expected):
    assert height_range(height, True) == expected


def test_height_range_rejects_text():
    with pytest.raises(ValueError):
        height_range("foo")


def test_supply():
    assert supply() == {
        "supply": SUPPLY_VALUE,
        "first": 0,
        "last": LAST,
        "last mined in block": 6929999,
    }


def test_invalid_ordinal():
    with pytest.raises(CommandError, match="Invalid ordinal"):
        traits(SUPPLY_VALUE)


def test_even_and_odd():
    assert "even" in _traits(0)
    assert "even" not in _traits(1)
    assert "even" in _traits(2)
    assert "odd" not in _traits(0)
    assert "odd" in _traits(1)
    assert "odd" not in _traits(2)


def test_pi():
    assert "pi" not in _traits(0)
    assert "pi" in _traits(3)
    assert "pi" in _traits(31)
    assert "pi" in _traits(314)
    assert "pi" not in _traits(3145)


def test_nice():
    assert "nice" not in _traits(0)
    assert "nice" in _traits(69)
    assert "nice" in _traits(6969)
    assert "nice" in _traits(696969)
    assert "nice" not in _traits(696968)
    assert "nice" not in _traits(6969698)


def test_angelic():
    assert "angelic" not in _traits(0)
    assert "angelic" in _traits(7)
    assert "angelic" in _traits(77)
    assert "angelic" in _traits(777)
    assert "angelic" not in _traits(778)


def test_name():
    assert "name: a" in _traits(LAST)
    assert "name: b" in _traits(LAST - 1)
    assert "name: z" in _traits(LAST - 25)
    assert "name: aa" in _traits(LAST - 26)
    assert "name: nvtdijuwxlp" in _traits(0)
    assert "name: nvtdijuwxlo" in _traits(1)
    assert "name: nvtdijuwxkp" in _traits(26)
    assert "name: nvtdijuwxko" in _traits(27)


def test_height():
    assert "height: 0" in _traits(0)
    assert "height: 0" in _traits(1)
    assert "height: 1" in _traits(50 * 100_000_000)
    assert "height: 6929999" in _traits(LAST)


def test_epoch():
    assert "epoch: 0" in _traits(0)
    assert "epoch: 0" in _traits(1)
    assert "epoch: 1" in _traits(50 * 100_000_000 * 210000)
    assert "epoch: 32" in _traits(LAST)


def test_luck():
    assert "luck: 0/1" in _traits(0)
    assert "luck: 1/1" in _traits(8)
    assert "luck: 2/2" in _traits(88)
    assert "luck: 1/2" in _traits(89)
    assert "luck: 0/2" in _traits(84)
    assert "luck: -1/1" in _traits(4)


def test_shiny():
    assert "shiny" in _traits(0)
    assert "shiny" not in _traits(1)
    assert "shiny" in _traits(LAST)
    assert "shiny" in _traits(50 * 100_000_000)
    assert "shiny" not in _traits(50 * 100_000_000 + 1)


def test_population():
    assert "population: 0" in _traits(0)
    assert "population: 1" in _traits(1)
    assert "population: 1" in _traits(2)
    assert "population: 2" in _traits(3)
    assert "population: 1" in _traits(4)


def test_square():
    assert "square" in _traits(0)
    assert "square" in _traits(1)
    assert "square" not in _traits(2)
    assert "square" in _traits(4)
    assert "square" not in _traits(5)
    assert "square" in _traits(9)


def test_cube():
    assert "cube" in _traits(0)
    assert "cube" in _traits(1)
    assert "cube" not in _traits(2)
    assert "cube" in _traits(8)
    assert "cube" not in _traits(9)
    assert "cube" in _traits(27)


def test_character():
    assert "character: '\\0'" in _traits(0x000000)
    assert "character: 'A'" in _traits(0x000041)
    assert "character: '😂'" in _traits(0x01F602)
    assert "character: '\\0'" in _traits(0x110000)
    assert "character: 'A'" in _traits(0x110041)


def test_surrogate_has_no_character():
    assert not any(line.startswith("character:") for line in traits(0xD800))


def test_cursed():
    assert "cursed" not in _traits(0)
    assert "cursed" not in _traits(ILLUSIVE)
    assert "cursed" in _traits(ILLUSIVE - 1)
    assert "cursed" not in _traits(ILLUSIVE + 1)


def test_illusive():
    assert "illusive" not in _traits(ILLUSIVE - 1)
    assert "illusive" in _traits(ILLUSIVE)
    assert "illusive" not in _traits(ILLUSIVE + 1)


def test_trait_order_for_zero():
    assert traits(0) == [
        "even",
        "square",
        "cube",
        "luck: 0/1",
        "population: 0",
        "name: nvtdijuwxlp",
        "character: '\\0'",
        "epoch: 0",
        "height: 0",
        "shiny",
    ]