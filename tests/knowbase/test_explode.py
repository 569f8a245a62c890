from knowbase.files.explode import column_name, explode, resolve_delimiter


def test_resolve_delimiter():
    assert resolve_delimiter("\\t") == "\t"
    assert resolve_delimiter("") == "\t"
    assert resolve_delimiter(",") == ","
    assert resolve_delimiter(";;") == ";"


def test_column_name_falls_back_to_index():
    assert column_name(["q", "a"], 1) == "a"
    assert column_name(["q"], 2) == "col_2"


def test_explode_without_headers(tmp_path):
    src = tmp_path / "faq.tsv"
    src.write_text("what\tthis\nwho\tthem\n", encoding="utf-8")

    written = explode(src)

    outdir = tmp_path / "faq.tsv.exploded"
    assert written == [outdir / "0000_faq.tsv", outdir / "0001_faq.tsv"]
    assert written[0].read_text(encoding="utf-8") == "col_0:\twhat\ncol_1:\tthis\n"


def test_explode_with_headers_and_out_dir(tmp_path):
    src = tmp_path / "faq.csv"
    src.write_text("question,answer\nwhy,because\n", encoding="utf-8")

    written = explode(src, out_dir="rows", delimiter=",", with_headers=True)

    assert written == [tmp_path / "rows" / "0001_faq.csv"]
    assert written[0].read_text(encoding="utf-8") == "question:\twhy\nanswer:\tbecause\n"
