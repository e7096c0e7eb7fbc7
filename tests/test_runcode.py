import pytest
import responses

from groupfun.runcode import (
    API_URL,
    TRUNCATION,
    RunCodeError,
    clear_newline_suffix,
    cut_too_long,
    lookup_language,
    run_code,
    template_for,
)


def test_lookup_language_is_case_insensitive():
    assert lookup_language("Python") == ("15", "py3")
    assert lookup_language("C++") == ("7", "cpp")


def test_lookup_unknown_language_raises():
    with pytest.raises(ValueError):
        lookup_language("brainfuck")


def test_template_for_known_language():
    assert template_for("py") == template_for("python")
    assert "Hello" in template_for("rust")


def test_template_unknown_language_raises():
    with pytest.raises(ValueError):
        template_for("cobol")


def test_clear_newline_suffix():
    assert clear_newline_suffix("abc\n\n\n") == "abc"
    assert clear_newline_suffix("a\nb") == "a\nb"


def test_cut_too_long_leaves_short_text():
    assert cut_too_long("line\nline\n") == "line\nline\n"


def test_cut_too_long_by_characters():
    text = "x" * 1500
    assert cut_too_long(text) == text[:1000] + TRUNCATION


def test_cut_too_long_by_lines():
    text = "a\n" * 40
    assert cut_too_long(text) == "a\n" * 30 + TRUNCATION


def test_cut_too_long_counts_crlf_once():
    text = "a\r\n" * 40
    result = cut_too_long(text)
    assert result.startswith("a\r\n" * 30)
    assert result.endswith(TRUNCATION)


def test_run_code_returns_output():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, API_URL, json={"errors": "\n\n", "output": "hi\n\n"})
        assert run_code("print('hi')", ("15", "py3")) == "hi"
        body = rsps.calls[0].request.body
        assert "language=15" in body
        assert "fileext=py3" in body


def test_run_code_raises_on_errors():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, API_URL, json={"errors": "boom\n", "output": ""})
        with pytest.raises(RunCodeError, match="boom"):
            run_code("x", ("15", "py3"))


def test_run_code_raises_on_bad_status():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, API_URL, status=500)
        with pytest.raises(RunCodeError, match="code not 200"):
            run_code("x", ("15", "py3"))