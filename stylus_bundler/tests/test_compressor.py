"""Tests for the CSS compressor."""

import pytest

from ..core.compressor import (
    collapse_box,
    compress,
    compress_colors,
    dedupe,
    optimize_declaration,
)

PRETTY = '\n'.join([
    'body {',
    '  color: #000;',
    '}',
    'div {',
    '}',
    'div {',
    '  font-weight: normal;',
    '  margin: 0px;',
    '  padding: 5px 0 5px 0;',
    '  background: hsl(134, 50%, 50%);',
    '  padding: 5px 0 5px 0;',
    '}',
    '',
])


class TestCompress:
    """Tests for compress."""

    def test_compress(self):
        """Test the full set of canonicalisations."""
        assert compress(PRETTY) == 'body{color:#000}div{font-weight:400;margin:0;background:#40bf5e;padding:5px 0}'

    def test_minifier_canonicalisations(self):
        """Test zero units, rgb() and hex colors and empty rules."""
        css = 'div{}\ndiv{margin:0px;background:rgb(64,191,94);color:#aabbcc}'
        assert compress(css) == 'div{margin:0;background:#40bf5e;color:#abc}'

    def test_margin_and_padding(self):
        """Test zero units and box collapsing together."""
        assert compress('a { margin: 0px; padding: 5px 0 5px 0; }') == 'a{margin:0;padding:5px 0}'

    def test_idempotent(self):
        """Test compressing compressed output."""
        once = compress(PRETTY)
        assert compress(once) == once

    def test_comments_removed(self):
        """Test that comments are dropped."""
        assert compress('/* head */\na {\n  /* x */\n  top: 0;\n}\n') == 'a{top:0}'

    def test_empty_blocks_removed(self):
        """Test empty rules and the @media block they leave behind."""
        assert compress('a {}\n@media print {\n  b {}\n}\nc { top: 0 }') == 'c{top:0}'

    def test_media(self):
        """Test declarations inside @media."""
        assert compress('@media print {\n  a {\n    margin: 0px 0px;\n  }\n}\n') == '@media print{a{margin:0}}'

    def test_source_map_comment_kept(self):
        """Test the trailing sourceMappingURL comment."""
        css = 'a {\n  top: 0px;\n}\n/*# sourceMappingURL=bundle.css.map */'
        expected = 'a{top:0}\n/*# sourceMappingURL=bundle.css.map */'
        assert compress(css) == expected
        assert compress(expected) == expected

    def test_inline_source_map_kept(self):
        """Test an inline map comment."""
        comment = '/*# sourceMappingURL=data:application/json;base64,eyJ2ZXJzaW9uIjozfQ== */'
        assert compress('a { top: 0 }\n' + comment) == 'a{top:0}\n' + comment

    def test_duplicates_keep_last(self):
        """Test that only identical declarations are merged."""
        assert compress('a { color: red; top: 0; color: red }') == 'a{top:0;color:red}'
        assert compress('a { color: red; color: blue }') == 'a{color:red;color:blue}'

    def test_prefixed_fallbacks_kept(self):
        """Test that repeated properties with different values survive."""
        css = 'a {\n  display: -webkit-box;\n  display: -ms-flexbox;\n  display: flex;\n}\n'
        assert compress(css) == 'a{display:-webkit-box;display:-ms-flexbox;display:flex}'

    def test_important(self):
        """Test !important through the cleanup."""
        assert compress('a { padding: 5px 0 5px 0 !important }') == 'a{padding:5px 0!important}'


class TestValues:
    """Tests for the value canonicalisations."""

    @pytest.mark.parametrize('value, expected', [
        ('5px 0 5px 0', '5px 0'),
        ('1px 2px 3px 2px', '1px 2px 3px'),
        ('1px 1px 1px 1px', '1px'),
        ('1px 2px 1px', '1px 2px'),
        ('1px 2px 3px 4px', '1px 2px 3px 4px'),
    ])
    def test_collapse_box(self, value, expected):
        """Test repeated sides."""
        assert collapse_box(value) == expected

    @pytest.mark.parametrize('value, expected', [
        ('hsl(134, 50%, 50%)', '#40bf5e'),
        ('hsl(0, 0%, 100%)', '#ffffff'),
        ('hsl(120deg 100% 25%)', '#008000'),
        ('hsla(134, 50%, 50%, 1)', '#40bf5e'),
        ('hsla(134, 50%, 50%, .5)', 'hsla(134, 50%, 50%, .5)'),
        ('1px solid hsl(0, 0%, 0%)', '1px solid #000000'),
        ('url(hsl(0,0%,0%).png)', 'url(hsl(0,0%,0%).png)'),
        ('rgb(255, 0, 0)', 'rgb(255, 0, 0)'),
    ])
    def test_compress_colors(self, value, expected):
        """Test hsl() to hex."""
        assert compress_colors(value) == expected

    def test_font_weight(self):
        """Test numeric font weights."""
        assert optimize_declaration('font-weight', 'normal') == ('font-weight', '400')
        assert optimize_declaration('font-weight', 'bold') == ('font-weight', '700')

    def test_important(self):
        """Test !important through the canonicalisations."""
        assert optimize_declaration('margin', '1px 1px!important') == ('margin', '1px!important')

    def test_colors_only_on_color_properties(self):
        """Test that other properties keep color-like functions."""
        assert optimize_declaration('content', 'hsl(0, 0%, 0%)') == ('content', 'hsl(0, 0%, 0%)')
        assert optimize_declaration('border-top-color', 'hsl(0, 0%, 0%)') == ('border-top-color', '#000000')

    def test_custom_properties_untouched(self):
        """Test that custom properties keep their value."""
        assert optimize_declaration('--gap', '1px 1px') == ('--gap', '1px 1px')

    def test_dedupe(self):
        """Test last-wins duplicate removal."""
        declarations = [('color', 'red', ''), ('top', '0', ''), ('COLOR', 'red', ''), ('color', 'red', 'important')]
        assert dedupe(declarations) == [('top', '0', ''), ('COLOR', 'red', ''), ('color', 'red', 'important')]
