from speech_runtime.languages import Language


def test_parse_accepts_names_and_iso_codes() -> None:
    assert Language.parse("German") is Language.GERMAN
    assert Language.parse("fr") is Language.FRENCH
    assert Language.parse(" ENGLISH ") is Language.ENGLISH


def test_parse_defaults_to_english() -> None:
    assert Language.parse(None) is Language.ENGLISH
    assert Language.parse("klingon") is Language.ENGLISH


def test_language_bindings() -> None:
    assert [language.voice_index for language in Language] == [0, 1, 2]
    assert [language.whisper_token for language in Language] == [50259, 50261, 50265]
