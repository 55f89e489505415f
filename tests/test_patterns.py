from lead_intake.patterns import matches_pattern


def test_wildcard_pattern_matches_anywhere_ignoring_case() -> None:
    assert matches_pattern("Jane Doe <JANE@Zillow.com>", "*@zillow.com")
    assert matches_pattern("leads@trulia.com", "leads@*")


def test_wildcard_dot_is_not_escaped() -> None:
    # Known limitation: "." in a wildcard pattern matches any character.
    assert matches_pattern("someone@zillowXcom", "*@zillow.com")


def test_plain_pattern_is_case_insensitive_substring() -> None:
    assert matches_pattern("jane@ZILLOW.com", "zillow.com")
    assert not matches_pattern("jane@realtor.com", "zillow.com")


def test_empty_pattern_or_text() -> None:
    assert not matches_pattern("jane@zillow.com", "")
    assert not matches_pattern(None, "zillow")  # type: ignore[arg-type]


def test_invalid_wildcard_pattern_does_not_match() -> None:
    assert not matches_pattern("anything", "*(")
