"""Tests for the vendor prefixer."""

import pytest

from ..core.prefixer import (
    BrowserTargets,
    Target,
    load_ruleset,
    parse_target,
    prefix,
    read_browserslist,
    resolve_targets,
)
from ..utils.error import PrefixConfigError
from .conftest import normalize_content


def prefixed(css, *browsers):
    return normalize_content(prefix(css, BrowserTargets(browsers=tuple(browsers))))


class TestRuleset:
    """Tests for the bundled ruleset."""

    def test_load(self):
        """Test loading the bundled database."""
        ruleset = load_ruleset()
        assert ruleset.version
        assert 'defaults' in ruleset.presets
        assert any(rule.property == 'display' and rule.value == 'flex' for rule in ruleset.rules)

    def test_load_missing(self, tmp_path):
        """Test a ruleset path that does not exist."""
        with pytest.raises(PrefixConfigError):
            load_ruleset(str(tmp_path / 'none.json'))

    def test_load_invalid(self, tmp_path):
        """Test a ruleset that is not JSON."""
        path = tmp_path / 'bad.json'
        path.write_text('not json')
        with pytest.raises(PrefixConfigError):
            load_ruleset(str(path))


class TestTargets:
    """Tests for browser target parsing."""

    def test_parse_name_and_version(self):
        """Test aliases and versions."""
        ruleset = load_ruleset()
        assert parse_target('Explorer 10', ruleset) == Target('ie', (10,))
        assert parse_target('ios 8.4', ruleset) == Target('ios_saf', (8, 4))
        assert parse_target('Internet  Explorer 11', ruleset) == Target('ie', (11,))

    def test_parse_comparison(self):
        """Test >= and > queries."""
        ruleset = load_ruleset()
        assert parse_target('ie >= 10', ruleset) == Target('ie', (10,))
        assert parse_target('ie > 10', ruleset) == Target('ie', (10,), exclusive=True)

    def test_parse_bare_name(self):
        """Test a browser without a version."""
        assert parse_target('safari', load_ruleset()) == Target('safari', (0,))

    @pytest.mark.parametrize('query', ['netscape 4', '> 1%', 'last 2 versions', 'ie 1.x'])
    def test_invalid(self, query):
        """Test queries that cannot be resolved."""
        with pytest.raises(PrefixConfigError):
            parse_target(query, load_ruleset())

    def test_needs(self):
        """Test the version comparison."""
        assert Target('ie', (10,)).needs((10,))
        assert not Target('ie', (11,)).needs((10,))
        assert not Target('ie', (10,), exclusive=True).needs((10,))
        assert Target('ios_saf', (8,)).needs((8, 4))

    def test_read_browserslist(self, tmp_path):
        """Test comments and commas in a browserslist file."""
        path = tmp_path / '.browserslistrc'
        path.write_text('# legacy\nExplorer 10, safari 8\n\nios 8.4 # phones\n')
        assert read_browserslist(str(path)) == ['Explorer 10', 'safari 8', 'ios 8.4']

    def test_config_file(self, tmp_path):
        """Test targets from a config path."""
        path = tmp_path / 'browsers'
        path.write_text('Explorer 10\n')
        rules = resolve_targets(BrowserTargets(config=str(path)))
        assert rules.targets == (Target('ie', (10,)),)

    def test_config_preset(self):
        """Test a named preset."""
        rules = resolve_targets(BrowserTargets(config='modern'))
        assert Target('chrome', (48,)) in rules.targets

    def test_unknown_config(self):
        """Test a preset name that does not exist."""
        with pytest.raises(PrefixConfigError):
            resolve_targets(BrowserTargets(config='no-such-preset'))

    def test_browserslist_in_source_dir(self, tmp_path):
        """Test discovery of a browserslist file."""
        (tmp_path / 'browserslist').write_text('ie 9\n')
        rules = resolve_targets(BrowserTargets(), source_dir=str(tmp_path))
        assert rules.targets == (Target('ie', (9,)),)

    def test_defaults(self, tmp_path):
        """Test the default preset."""
        rules = resolve_targets(BrowserTargets(), source_dir=str(tmp_path))
        assert len(rules.targets) == len(load_ruleset().presets['defaults'])

    def test_preset_inside_list(self):
        """Test a preset name used as a browser query."""
        rules = resolve_targets(BrowserTargets(browsers=('modern', 'ie 10')))
        assert Target('ie', (10,)) in rules.targets
        assert Target('safari', (9,)) in rules.targets


class TestPrefix:
    """Tests for prefix and prefix_tree."""

    def test_display_flex_defaults(self):
        """Test the flexbox prefixes of the default targets in order."""
        css = normalize_content(prefix('a { display: flex }', BrowserTargets(config='defaults')))
        assert css == 'a{display:-webkit-box;display:-webkit-flex;display:-ms-flexbox;display:flex;}'

    def test_display_flex_ie10(self):
        """Test a single legacy browser."""
        assert prefixed('a { display: flex }', 'Explorer 10') == 'a{display:-ms-flexbox;display:flex;}'

    def test_modern_browser(self):
        """Test that a browser needing nothing adds nothing."""
        assert prefixed('a { display: flex }', 'ie >= 11') == 'a{display:flex;}'

    def test_property_prefix(self):
        """Test property renaming."""
        assert prefixed('a { transform: scale(2) }', 'ie 9', 'chrome 30') == \
            'a{-webkit-transform:scale(2);-ms-transform:scale(2);transform:scale(2);}'

    def test_value_map(self):
        """Test translated legacy values."""
        assert prefixed('a { justify-content: space-between }', 'ie 10') == \
            'a{-ms-flex-pack:justify;justify-content:space-between;}'

    def test_value_without_mapping(self):
        """Test a value the legacy syntax cannot express."""
        assert prefixed('a { justify-content: space-evenly }', 'ie 10') == 'a{justify-content:space-evenly;}'

    def test_existing_prefix_not_duplicated(self):
        """Test declarations already written by the author."""
        assert prefixed('a { display: -ms-flexbox; display: flex }', 'ie 10') == \
            'a{display:-ms-flexbox;display:flex;}'
        assert prefixed('a { -webkit-transform: none; transform: scale(2) }', 'chrome 30') == \
            'a{-webkit-transform:none;transform:scale(2);}'

    def test_important(self):
        """Test !important carried to prefixed declarations."""
        assert prefixed('a { display: flex !important }', 'ie 10') == \
            'a{display:-ms-flexbox!important;display:flex!important;}'

    def test_nested_blocks(self):
        """Test declarations inside @media."""
        assert prefixed('@media print { a { order: 1 } }', 'ie 10') == \
            '@mediaprint{a{-ms-flex-order:1;order:1;}}'

    def test_unprefixed_properties_untouched(self):
        """Test properties without rules."""
        assert prefixed('a { color: red; top: 0 }', 'ie 10') == 'a{color:red;top:0;}'

    def test_string_never_read_from_disk(self, tmp_path, monkeypatch):
        """Test that imports in plain CSS text stay as written."""
        monkeypatch.chdir(tmp_path)
        assert prefixed('@import "missing.css";\na { order: 1 }', 'ie 10') == \
            '@import"missing.css";a{-ms-flex-order:1;order:1;}'
