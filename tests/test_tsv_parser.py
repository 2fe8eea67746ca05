"""
Tests for the TSV parser (Layer 1: Raw Input -> header + rows).

We need to:
1. Split the document into logical lines, honouring quotes
2. Split each line into fields, honouring quotes
3. Unwrap quoted fields and collapse "" escapes
4. Keep every row aligned to the header
5. Fail distinctly on a missing source file
"""

import pytest
from tabgraph.tsv_parser import (
    ParsedDocument,
    SourceNotFound,
    parse_tsv_file,
    parse_tsv_records,
    parse_tsv_string,
    split_fields,
    split_logical_lines,
)


class TestBasicParsing:
    """Plain tab-delimited documents."""

    def test_header_and_rows(self):
        doc = parse_tsv_string("code\tname\n11\tAgriculture\n111\tCrop Production\n")
        assert doc.header == ["code", "name"]
        assert doc.rows == [["11", "Agriculture"], ["111", "Crop Production"]]

    def test_empty_document(self):
        doc = parse_tsv_string("")
        assert doc.header == []
        assert doc.rows == []

    def test_only_blank_lines(self):
        doc = parse_tsv_string("\n\n   \n")
        assert doc.header == []
        assert len(doc) == 0

    def test_header_only(self):
        doc = parse_tsv_string("a\tb\n")
        assert doc.header == ["a", "b"]
        assert doc.rows == []

    def test_leading_bom_stripped(self):
        doc = parse_tsv_string("\ufeffcode\tname\n11\tAgriculture")
        assert doc.header == ["code", "name"]

    def test_fields_are_trimmed(self):
        doc = parse_tsv_string("a\tb\n  1  \t 2 ")
        assert doc.rows == [["1", "2"]]

    def test_blank_lines_dropped(self):
        doc = parse_tsv_string("a\n\n1\n   \n2\n\n")
        assert doc.rows == [["1"], ["2"]]

    def test_comma_delimiter(self):
        doc = parse_tsv_string('a,b\n"x,y",z', delimiter=",")
        assert doc.rows == [["x,y", "z"]]

    def test_row_of_empty_fields_kept(self):
        doc = parse_tsv_string("a\tb\tc\n1\t2\t3\n\t\t\n4\t5\t6")
        assert doc.rows == [["1", "2", "3"], ["", "", ""], ["4", "5", "6"]]
        assert doc.issues == []

    def test_row_of_empty_fields_kept_with_comma_delimiter(self):
        doc = parse_tsv_string("a,b\n,\n1,2", delimiter=",")
        assert doc.rows == [["", ""], ["1", "2"]]


class TestLineEndings:
    """CR, LF and CRLF all end a logical line outside quotes."""

    def test_crlf(self):
        doc = parse_tsv_string("a\tb\r\n1\t2\r\n3\t4")
        assert doc.rows == [["1", "2"], ["3", "4"]]

    def test_lone_cr(self):
        doc = parse_tsv_string("a\r1\r2")
        assert doc.rows == [["1"], ["2"]]

    def test_crlf_does_not_create_blank_rows(self):
        doc = parse_tsv_string("a\r\n\r\n1\r\n")
        assert doc.rows == [["1"]]


class TestQuoting:
    """Quoted fields, escapes and embedded control characters."""

    def test_quoted_field_with_embedded_controls(self):
        doc = parse_tsv_string('value\n"a\tb\nc"\n')
        assert doc.rows == [["a\tb\nc"]]

    def test_doubled_quote_escape(self):
        doc = parse_tsv_string('quote\n"She said ""hi"""')
        assert doc.rows == [['She said "hi"']]

    def test_quoted_crlf_kept_literally(self):
        doc = parse_tsv_string('a\tb\r\n"x\r\ny"\tz\r\n')
        assert doc.rows == [["x\r\ny", "z"]]

    def test_quoted_blank_line_kept(self):
        doc = parse_tsv_string('a\tb\n"first\n\nsecond"\t2')
        assert doc.rows == [["first\n\nsecond", "2"]]

    def test_quoted_whitespace_preserved_inside_quotes(self):
        doc = parse_tsv_string('a\tb\n1\t " x " ')
        assert doc.rows == [["1", " x "]]

    def test_empty_quoted_field(self):
        doc = parse_tsv_string('a\tb\tc\n1\t""\t3')
        assert doc.rows == [["1", "", "3"]]

    def test_quote_inside_unquoted_field_is_literal(self):
        doc = parse_tsv_string('size\tunit\n5" pipe\tinch\n6" pipe\tinch')
        assert doc.rows == [['5" pipe', "inch"], ['6" pipe', "inch"]]

    def test_only_one_quote_layer_unwrapped_in_data(self):
        doc = parse_tsv_string('a\n"""quoted"""')
        assert doc.rows == [['"quoted"']]

    def test_header_quote_layers_unwrapped(self):
        doc = parse_tsv_string('""name""\t"code"\n1\t2')
        assert doc.header == ["name", "code"]

    def test_header_embedded_bom_stripped(self):
        doc = parse_tsv_string('"\ufeffname"\tcode\nx\ty')
        assert doc.header == ["name", "code"]


class TestMalformedRows:
    """Malformed input is repaired, never rejected."""

    def test_short_row_padded(self):
        doc = parse_tsv_string("a\tb\tc\n1")
        assert doc.rows == [["1", "", ""]]
        assert any("padded" in issue for issue in doc.issues)

    def test_long_row_truncated(self):
        doc = parse_tsv_string("a\tb\n1\t2\t3")
        assert doc.rows == [["1", "2"]]
        assert any("extra" in issue for issue in doc.issues)

    def test_every_row_matches_header_width(self):
        doc = parse_tsv_string("a\tb\tc\n1\n1\t2\n1\t2\t3\n1\t2\t3\t4")
        assert all(len(row) == len(doc.header) for row in doc.rows)

    def test_unterminated_quote_is_flushed(self):
        doc = parse_tsv_string('a\tb\n1\t"unterminated\nstill going')
        assert doc.rows == [["1", "unterminated\nstill going"]]
        assert any("open quoted field" in issue for issue in doc.issues)

    def test_text_after_closing_quote_kept_raw(self):
        doc = parse_tsv_string('a\tb\n"abc"x\t2')
        assert doc.rows == [['"abc"x', "2"]]
        assert any("closing quote" in issue for issue in doc.issues)

    def test_escaped_quote_before_trailing_text(self):
        doc = parse_tsv_string('a\n"say ""hi"" now" later')
        assert doc.rows == [['"say ""hi"" now" later']]

    def test_well_formed_document_has_no_issues(self):
        doc = parse_tsv_string("a\tb\n1\t2")
        assert doc.issues == []


class TestPasses:
    """The two passes are usable on their own."""

    def test_split_logical_lines(self):
        lines = split_logical_lines('a\n"b\nc"\n\nd')
        assert lines == ["a", '"b\nc"', "d"]

    def test_split_logical_lines_keeps_delimiter_only_lines(self):
        assert split_logical_lines("a\tb\n\t\n   \n") == ["a\tb", "\t"]

    def test_split_fields_keeps_quotes(self):
        assert split_fields('1\t"2\t3"') == ["1", '"2\t3"']

    def test_split_fields_trailing_empty(self):
        assert split_fields("1\t2\t") == ["1", "2", ""]


class TestParsedDocument:
    """Rows addressable by header-declared column name."""

    def test_records(self):
        doc = parse_tsv_string("code\tname\n11\tAgriculture")
        assert list(doc.records()) == [{"code": "11", "name": "Agriculture"}]

    def test_column(self):
        doc = parse_tsv_string("code\tname\n11\tA\n12\tB")
        assert doc.column("code") == ["11", "12"]

    def test_missing_column(self):
        doc = ParsedDocument(header=["a"], rows=[["1"]])
        with pytest.raises(KeyError):
            doc.column("b")


class TestFileParsing:
    """Reading from disk."""

    def test_parse_tsv_file(self, tmp_path):
        tsv_file = tmp_path / "naics.tsv"
        tsv_file.write_text("code\tname\n11\tAgriculture\n", encoding="utf-8")

        doc = parse_tsv_file(str(tsv_file))
        assert doc.header == ["code", "name"]
        assert doc.rows == [["11", "Agriculture"]]

    def test_file_keeps_quoted_carriage_returns(self, tmp_path):
        tsv_file = tmp_path / "crlf.tsv"
        tsv_file.write_bytes('a\tb\r\n"x\r\ny"\t2\r\n'.encode("utf-8"))

        doc = parse_tsv_file(str(tsv_file))
        assert doc.rows == [["x\r\ny", "2"]]

    def test_file_with_bom(self, tmp_path):
        tsv_file = tmp_path / "bom.tsv"
        tsv_file.write_bytes(b"\xef\xbb\xbfcode\tname\n1\tx")

        doc = parse_tsv_file(str(tsv_file))
        assert doc.header == ["code", "name"]

    def test_parse_tsv_records(self, tmp_path):
        tsv_file = tmp_path / "records.tsv"
        tsv_file.write_text("code\tname\n11\tAgriculture", encoding="utf-8")

        assert parse_tsv_records(str(tsv_file)) == [{"code": "11", "name": "Agriculture"}]

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.tsv"
        with pytest.raises(SourceNotFound) as excinfo:
            parse_tsv_file(str(missing))
        assert excinfo.value.path == str(missing)

    def test_missing_file_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_tsv_file(str(tmp_path / "nope.tsv"))
