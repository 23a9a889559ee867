"""Tests for atma.core.script_parser: the lark grammar for palette scripts."""

import os

import pytest

from atma.core import commands as cmd
from atma.core.errors import ScriptSyntaxError
from atma.core.script_parser import decode_script, iter_script, parse_line, parse_script, parse_script_file

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), 'fixtures')
SAMPLE_SCRIPT = os.path.join(FIXTURES_DIR, 'sample.atma')


def _shape(node):
    return [(a.kind, a.value, a.keyword) for a in node.args]


class TestParseLine:
    def test_word_form(self):
        node = parse_line('insert #FF0000 name=accent')
        assert node.name == 'insert'
        assert _shape(node) == [(cmd.HEX_COLOR, '#FF0000', None), (cmd.WORD, 'accent', 'name')]

    def test_call_form_matches_word_form(self):
        word = parse_line('insert #FF0000 name=accent')
        call = parse_line('insert(#FF0000, name=accent)')
        assert call.name == word.name
        assert _shape(call) == _shape(word)

    def test_call_form_trailing_comma(self):
        node = parse_line('delete(0,)')
        assert _shape(node) == [(cmd.INT, 0, None)]

    def test_columns(self):
        node = parse_line('insert #FF0000 name=accent')
        assert (node.line, node.column) == (1, 1)
        assert node.args[0].column == 8
        assert node.args[1].column == 16

    def test_line_offset(self):
        node = parse_line('delete 0', line=7)
        assert node.line == 7
        assert node.args[0].line == 7

    def test_command_word_lowercased(self):
        assert parse_line('INSERT red').name == 'insert'

    def test_blank_line(self):
        assert parse_line('') is None
        assert parse_line('   \t') is None

    def test_comment_only(self):
        assert parse_line('# just a note') is None

    def test_trailing_comment_after_hex(self):
        node = parse_line('insert #FF0000 # accent')
        assert _shape(node) == [(cmd.HEX_COLOR, '#FF0000', None)]

    def test_functional_colour(self):
        node = parse_line('insert rgb(255, 0, 0)')
        assert _shape(node) == [(cmd.FUNC_COLOR, 'rgb(255, 0, 0)', None)]

    def test_hsl_in_call_form(self):
        node = parse_line('insert(hsl(0, 100%, 50%), name=red)')
        assert node.args[0].kind == cmd.FUNC_COLOR
        assert node.args[1].keyword == 'name'

    def test_range(self):
        node = parse_line('delete 0..4')
        assert _shape(node) == [(cmd.RANGE, (0, 4), None)]

    def test_group_reference(self):
        node = parse_line('set @warm color red')
        assert _shape(node)[0] == (cmd.GROUP_REF, 'warm', None)

    def test_group_index(self):
        node = parse_line('delete @warm:1')
        assert _shape(node) == [(cmd.GROUP_INDEX, ('warm', 1, 1), None)]

    def test_group_index_range(self):
        node = parse_line('list @warm:0..2')
        assert _shape(node) == [(cmd.GROUP_INDEX, ('warm', 0, 2), None)]

    def test_selection_list_word_form(self):
        node = parse_line('set 0, 3..5, accent color red')
        selection = node.args[0]
        assert selection.kind == cmd.SELECTION
        assert [(a.kind, a.value) for a in selection.value] == [
            (cmd.INT, 0),
            (cmd.RANGE, (3, 5)),
            (cmd.WORD, 'accent'),
        ]
        assert _shape(node)[1:] == [(cmd.WORD, 'color', None), (cmd.WORD, 'red', None)]

    def test_selection_list_in_brackets(self):
        word = parse_line('delete 0, @warm')
        call = parse_line('delete([0, @warm])')
        assert [a.value for a in call.args[0].value] == [a.value for a in word.args[0].value]

    def test_selection_list_keyword(self):
        node = parse_line('export out.png selector=0, 2')
        assert node.args[1].keyword == 'selector'
        assert node.args[1].kind == cmd.SELECTION

    def test_star(self):
        node = parse_line('list *')
        assert _shape(node) == [(cmd.ALL, None, None)]

    def test_quoted_string(self):
        node = parse_line('rename 0 "dark red"')
        assert node.args[1].kind == cmd.STRING
        assert node.args[1].value == 'dark red'

    def test_single_quotes_and_escapes(self):
        node = parse_line(r"rename 0 'it\'s'")
        assert node.args[1].value == "it's"

    def test_path_word(self):
        node = parse_line('save out/palette.json')
        assert _shape(node) == [(cmd.WORD, 'out/palette.json', None)]

    def test_relative_path_needs_quotes(self):
        assert _shape(parse_line('save "../out.json"')) == [(cmd.STRING, '../out.json', None)]
        with pytest.raises(ScriptSyntaxError):
            parse_line('save ../out.json')

    def test_source_kept(self):
        assert parse_line('  delete 3  ').source == 'delete 3'


class TestSyntaxErrors:
    def test_unexpected_character(self):
        with pytest.raises(ScriptSyntaxError) as info:
            parse_line('insert $')
        assert (info.value.line, info.value.column) == (1, 8)
        assert str(info.value).startswith('1:8: syntax error')

    def test_unclosed_call(self):
        with pytest.raises(ScriptSyntaxError) as info:
            parse_line('insert(#ff0000')
        assert info.value.line == 1

    def test_dangling_keyword(self):
        with pytest.raises(ScriptSyntaxError):
            parse_line('insert red name=')

    def test_error_line_in_script(self):
        with pytest.raises(ScriptSyntaxError) as info:
            parse_script('insert red\ninsert blue\ninsert $\n')
        assert (info.value.line, info.value.column) == (3, 8)


class TestParseScript:
    def test_comment_then_command(self):
        nodes = parse_script('# note\ninsert #FF0000 name=accent')
        assert len(nodes) == 1
        assert nodes[0].line == 2

    def test_skips_blank_and_comment_lines(self):
        nodes = parse_script('insert red\n\n# c\ndelete 0\n')
        assert [(n.name, n.line) for n in nodes] == [('insert', 1), ('delete', 4)]

    def test_continuation(self):
        nodes = parse_script('insert #ff0000 \\\n    name=accent\ndelete 0')
        assert [n.name for n in nodes] == ['insert', 'delete']
        assert nodes[0].args[1].keyword == 'name'
        assert nodes[0].args[1].line == 2
        assert nodes[1].line == 3

    def test_backslash_in_comment_does_not_continue(self):
        nodes = parse_script('insert red # note \\\ndelete 0\n')
        assert [n.name for n in nodes] == ['insert', 'delete']
        assert nodes[0].args[1:] == ()
        assert nodes[1].line == 2

    def test_continuation_after_hex_literal(self):
        nodes = parse_script('insert #abc \\\n  name=pale\n')
        assert len(nodes) == 1
        assert nodes[0].args[1].keyword == 'name'

    def test_hash_inside_string_is_not_a_comment(self):
        nodes = parse_script('insert "a#b" \\\n  name=x\n')
        assert nodes[0].args[0].value == 'a#b'
        assert nodes[0].args[1].keyword == 'name'

    def test_crlf(self):
        nodes = parse_script('insert red\r\ninsert blue\r\n')
        assert len(nodes) == 2

    def test_bom_stripped(self):
        nodes = parse_script('\ufeffinsert red')
        assert nodes[0].column == 1

    def test_iter_script_is_lazy(self):
        nodes = iter_script('insert red\ninsert $')
        assert next(nodes).name == 'insert'
        with pytest.raises(ScriptSyntaxError):
            next(nodes)


class TestParseScriptFile:
    def test_loads_sample(self):
        nodes = parse_script_file(SAMPLE_SCRIPT)
        assert [n.name for n in nodes] == [
            'insert',
            'insert',
            'insert',
            'insert',
            'insert',
            'group',
            'group',
            'group',
            'set',
            'move',
        ]

    def test_sample_continuation_line(self):
        nodes = parse_script_file(SAMPLE_SCRIPT)
        set_node = nodes[8]
        assert set_node.args[2].kind == cmd.HEX_COLOR
        assert set_node.args[2].line == set_node.line + 1


class TestDecodeScript:
    def test_strips_bom(self):
        assert decode_script(b'\xef\xbb\xbfinsert red') == 'insert red'

    def test_invalid_utf8_is_located(self):
        with pytest.raises(ScriptSyntaxError) as info:
            decode_script(b'insert red\ninsert \xff\n')
        assert (info.value.line, info.value.column) == (2, 8)
        assert '0xff' in info.value.message

    def test_read_script_rejects_binary(self, tmp_path):
        path = tmp_path / 'swatches.png'
        path.write_bytes(b'\x89PNG\r\n\x1a\n')
        with pytest.raises(ScriptSyntaxError):
            parse_script_file(str(path))
