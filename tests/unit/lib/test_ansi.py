from dayplan.lib import ansi
from dayplan.lib.ansi import DEFAULT, PLAIN, POOL, Theme, bold, strip


def test_theme_defaults():
    assert DEFAULT.bold == "\033[1m"
    assert DEFAULT.reset == "\033[0m"
    assert len(POOL) == 8


def test_theme_colors():
    t = Theme()
    assert t.red == "\033[38;5;203m"
    assert t.green == "\033[38;5;114m"
    assert t.muted == "\033[90m"


def test_bold():
    result = bold("hi")
    assert "\033[1m" in result
    assert "hi" in result
    assert "\033[0m" in result


def test_strip():
    assert strip("\033[1mhello\033[0m") == "hello"


def test_tag_color_is_stable():
    assert ansi.tag("work") == ansi.tag("work")
    assert strip(ansi.tag("work")) == "#work"


def test_plain_theme_has_no_escapes():
    ansi.use(PLAIN)
    try:
        assert ansi.green("ok") == "ok"
        assert ansi.tag("home") == "#home"
    finally:
        ansi.use(DEFAULT)
