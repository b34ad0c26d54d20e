"""Tests for the source resolver."""

import pytest

from ..core.resolver import Fragment, SeenFiles, resolve
from ..core.tree import render
from ..managers.files import FileStore
from ..utils.common import normalize_path
from ..utils.error import ResolutionError
from .conftest import normalize_content


def resolve_css(fragments, **kwargs):
    return normalize_content(render(resolve(fragments, **kwargs).stylesheet).css)


class TestSeenFiles:
    """Tests for SeenFiles."""

    def test_admit_once(self, tmp_path):
        """Test that a path is admitted once."""
        seen = SeenFiles()
        path = str(tmp_path / 'a.styl')
        assert seen.admit(path)
        assert not seen.admit(path)
        assert path in seen
        assert len(seen) == 1

    def test_spelling_differences_collapse(self, tmp_path):
        """Test that different spellings of one file are one entry."""
        (tmp_path / 'dir').mkdir()
        seen = SeenFiles([str(tmp_path / 'a.styl')])
        assert not seen.admit(str(tmp_path / 'dir' / '..' / 'a.styl'))


class TestResolve:
    """Tests for resolve."""

    def test_import_once(self, project):
        """Test that one file imported twice contributes once."""
        root = project({
            'blocks': {
                'block.styl': '@import "file"\n@import "file.styl"\n',
                'file.styl': 'body\n  color #000\n',
            }
        })
        fragments = [Fragment(str(root / 'blocks' / 'block.styl'))]
        assert resolve_css(fragments) == 'body{color:#000;}'

    def test_self_import(self, project):
        """Test that a file importing itself terminates."""
        root = project({'blocks': {'a.styl': '@import "a"\nbody\n  color red\n'}})
        assert resolve_css([Fragment(str(root / 'blocks' / 'a.styl'))]) == 'body{color:red;}'

    def test_mutual_imports(self, project):
        """Test an import cycle between two files."""
        root = project({
            'blocks': {
                'a.styl': '@import "b"\n.a\n  top 0\n',
                'b.styl': '@import "a"\n.b\n  top 0\n',
            }
        })
        assert resolve_css([Fragment(str(root / 'blocks' / 'a.styl'))]) == '.b{top:0;}.a{top:0;}'

    def test_root_already_imported(self, project):
        """Test a root fragment pulled in by an earlier root."""
        root = project({
            'blocks': {
                'a.styl': '@import "b"\n.a\n  top 0\n',
                'b.styl': '.b\n  top 0\n',
            }
        })
        fragments = [Fragment(str(root / 'blocks' / 'a.styl')), Fragment(str(root / 'blocks' / 'b.styl'))]
        assert resolve_css(fragments) == '.b{top:0;}.a{top:0;}'

    def test_import_of_earlier_root(self, project):
        """Test importing a file that was already a root fragment."""
        root = project({
            'blocks': {
                'vars.styl': 'c = red\nbody\n  color c\n',
                'page.styl': '@import "vars"\n.p\n  color c\n',
            }
        })
        fragments = [Fragment(str(root / 'blocks' / 'vars.styl')), Fragment(str(root / 'blocks' / 'page.styl'))]
        assert resolve_css(fragments) == 'body{color:red;}.p{color:red;}'

    def test_duplicate_roots(self, project):
        """Test the same root fragment listed twice."""
        root = project({'blocks': {'a.styl': '.a\n  top 0\n'}})
        path = str(root / 'blocks' / 'a.styl')
        assert resolve_css([Fragment(path), Fragment(path)]) == '.a{top:0;}'

    def test_missing_import(self, project):
        """Test an unresolvable import."""
        root = project({'blocks': {'a.styl': '\n@import "missing"\n'}})
        path = str(root / 'blocks' / 'a.styl')
        with pytest.raises(ResolutionError) as excinfo:
            resolve([Fragment(path)])
        assert excinfo.value.target == 'missing'
        assert excinfo.value.lineno == 2
        assert 'missing' in str(excinfo.value)

    def test_lookup_roots(self, project):
        """Test imports found in a lookup root."""
        root = project({
            'blocks': {'a.styl': '@import "mixins"\n.a\n  pad 1px\n'},
            'libs': {'mixins': {'index.styl': 'pad(n)\n  padding n\n'}},
        })
        fragments = [Fragment(str(root / 'blocks' / 'a.styl'))]
        assert resolve_css(fragments, lookup_roots=[str(root / 'libs')]) == '.a{padding:1px;}'

    def test_fragment_lookup_roots(self, project):
        """Test per-fragment lookup roots."""
        root = project({
            'blocks': {'a.styl': '@require "theme"\n.a\n  color fg\n'},
            'libs': {'theme.styl': 'fg = #fff\n'},
        })
        fragments = [Fragment(str(root / 'blocks' / 'a.styl'), lookup_roots=(str(root / 'libs'),))]
        assert resolve_css(fragments) == '.a{color:#fff;}'

    def test_css_import_is_literal(self, project):
        """Test that imported .css is not evaluated."""
        root = project({
            'blocks': {
                'a.styl': 'x = 1px\n@import "plain.css"\n',
                'plain.css': 'a { width: x; }',
            }
        })
        assert resolve_css([Fragment(str(root / 'blocks' / 'a.styl'))]) == 'a{width:x;}'

    def test_url_import_passes_through(self, project):
        """Test that url() imports are left for the browser."""
        root = project({'blocks': {'a.styl': '@import url(http://fonts/x.css)\n'}})
        assert resolve_css([Fragment(str(root / 'blocks' / 'a.styl'))]) == '@importurl(http://fonts/x.css);'

    def test_touched_files(self, project):
        """Test the files reported by a compile."""
        root = project({
            'blocks': {
                'a.styl': '@import "b"\n@import "b"\n',
                'b.styl': '.b\n  top 0\n',
            }
        })
        unit = resolve([Fragment(str(root / 'blocks' / 'a.styl'))])
        assert unit.files == (
            normalize_path(str(root / 'blocks' / 'a.styl')),
            normalize_path(str(root / 'blocks' / 'b.styl')),
        )

    def test_supplied_content(self, tmp_path):
        """Test a fragment whose content is supplied."""
        files = FileStore()
        path = str(tmp_path / 'virtual.styl')
        fragments = [Fragment(path, content='.v\n  top 0\n')]
        assert resolve_css(fragments, files=files) == '.v{top:0;}'
        assert files.read_text(path) == '.v\n  top 0\n'

    def test_seen_files_shared(self, project):
        """Test a seen-file set carried into the call."""
        root = project({'blocks': {'a.styl': '.a\n  top 0\n', 'b.styl': '.b\n  top 0\n'}})
        seen = SeenFiles([str(root / 'blocks' / 'a.styl')])
        fragments = [Fragment(str(root / 'blocks' / 'a.styl')), Fragment(str(root / 'blocks' / 'b.styl'))]
        assert resolve_css(fragments, seen=seen) == '.b{top:0;}'
        assert len(seen) == 2
