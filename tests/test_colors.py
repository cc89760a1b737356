from brandscape.utils.colors import color_family, enhance_prompt_with_color_names, hex_to_color_name


def test_hex_to_color_name():
    assert hex_to_color_name("#FF0000") == "red"
    assert hex_to_color_name("000080") == "navy blue"
    assert hex_to_color_name("#XYZ") == "unknown"
    assert hex_to_color_name(None) == "unknown"


def test_enhance_prompt_names_existing_hex_codes():
    prompt = "Minimal yarn ball in #0b5394 with #F4B183 needles"
    enhanced = enhance_prompt_with_color_names(prompt, "#0B5394", "#F4B183")
    assert "(#0B5394)" in enhanced
    assert "(#F4B183)" in enhanced
    assert enhanced.startswith("Use ")


def test_enhance_prompt_without_hex_codes_prepends_instruction():
    enhanced = enhance_prompt_with_color_names("A flat primary emblem", "#FF0000", "#0000FF")
    assert enhanced.startswith("Use red color (#FF0000) as primary and blue color (#0000FF) as accent. ")


def test_enhance_prompt_with_invalid_hex_is_unchanged():
    assert enhance_prompt_with_color_names("A logo", "red", "#0000FF") == "A logo"


def test_color_family():
    assert color_family("#FF0000") == "warm"
    assert color_family("#0000FF") == "cool"
    assert color_family("#808080") == "neutral"
