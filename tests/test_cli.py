"""End-to-end tests for the command line."""

from pathlib import Path

import pytest

from jtemplate.driver.cli import main

DEQUE = "public class KTypeArrayDeque<KType> { KType[] buffer; }\n"
MAP = "public interface KTypeVTypeMap<KType, VType> { VType get(KType key); }\n"


@pytest.fixture
def deque(tmp_path: Path) -> Path:
    path = tmp_path / "KTypeArrayDeque.java"
    path.write_text(DEQUE)
    return path


@pytest.fixture
def map_template(tmp_path: Path) -> Path:
    path = tmp_path / "KTypeVTypeMap.java"
    path.write_text(MAP)
    return path


class TestSingle:
    def test_writes_to_stdout(self, deque, capsys):
        assert main([str(deque), "--ktype", "int"]) == 0
        out, err = capsys.readouterr()
        assert out == "public class IntArrayDeque { int[] buffer; }\n"
        assert "jtemplate signature processor" in err

    def test_writes_to_file(self, map_template, tmp_path, capsys):
        target = tmp_path / "gen" / "IntObjectMap.java"
        assert main([str(map_template), "--ktype", "int", "--vtype", "generic", "-o", str(target)]) == 0
        assert target.read_text() == "public interface IntObjectMap<VType> { VType get(int key); }\n"
        _, err = capsys.readouterr()
        assert "Success!" in err

    def test_missing_vtype(self, map_template, capsys):
        assert main([str(map_template), "--ktype", "int"]) == 2
        _, err = capsys.readouterr()
        assert "TE3001" in err

    def test_extra_vtype(self, deque, capsys):
        assert main([str(deque), "--ktype", "int", "--vtype", "long"]) == 2
        assert "TE3002" in capsys.readouterr().err

    def test_unknown_type(self, deque, capsys):
        assert main([str(deque), "--ktype", "string"]) == 2
        assert "TE3003" in capsys.readouterr().err

    def test_ktype_required(self, deque, capsys):
        assert main([str(deque)]) == 2
        assert "--ktype is required" in capsys.readouterr().err

    def test_unreadable_source(self, tmp_path, capsys):
        assert main([str(tmp_path / "Missing.java"), "--ktype", "int"]) == 2
        err = capsys.readouterr().err
        assert "TE5001" in err
        assert "cannot read" in err

    def test_undecodable_source(self, tmp_path, capsys):
        path = tmp_path / "KTypeFoo.java"
        path.write_bytes(b"class KTypeFoo<KType> { // \xe9t\xe9\n }")
        assert main([str(path), "--ktype", "int"]) == 2
        err = capsys.readouterr().err
        assert "TE5001" in err
        assert "not valid UTF-8" in err

    def test_warnings_exit_one(self, tmp_path, capsys):
        path = tmp_path / "KTypeFoo.java"
        path.write_text("class KTypeFoo<KType> { List<KType> l; }")
        assert main([str(path), "--ktype", "int"]) == 1
        out, err = capsys.readouterr()
        assert out == "class IntFoo { List<Object> l; }"
        assert "TW0002" in err

    def test_syntax_error(self, tmp_path, capsys):
        path = tmp_path / "KTypeFoo.java"
        path.write_text("class KTypeFoo<KType> {")
        assert main([str(path), "--ktype", "int"]) == 2
        assert "TE1004" in capsys.readouterr().err

    def test_dumps(self, deque, capsys):
        assert main([str(deque), "--dump-tokens", "--dump-tree"]) == 0
        out = capsys.readouterr().out
        assert "IDENT" in out
        assert "type_decl" in out

    def test_dump_ops(self, deque, capsys):
        assert main([str(deque), "--ktype", "int", "--dump-ops"]) == 0
        out = capsys.readouterr().out
        assert "IntArrayDeque" in out.split("\n\n")[0]


class TestBatch:
    def test_all_for_directory(self, tmp_path, capsys):
        src = tmp_path / "src"
        src.mkdir()
        (src / "KTypeArrayDeque.java").write_text(DEQUE)
        (src / "KTypeVTypeMap.java").write_text(MAP)
        out = tmp_path / "out"
        code = main([str(src), "--all", "--ktype", "int,long", "--vtype", "int", "--output-dir", str(out), "-j", "2"])
        assert code == 0
        assert sorted(p.name for p in out.iterdir()) == [
            "IntArrayDeque.java", "IntIntMap.java", "LongArrayDeque.java", "LongIntMap.java"]
        assert "Wrote 4 file(s)" in capsys.readouterr().err

    @pytest.mark.parametrize("jobs", ["0", "-3"])
    def test_jobs_must_be_positive(self, deque, tmp_path, capsys, jobs):
        code = main([str(deque), "--all", "--ktype", "int", "--output-dir", str(tmp_path / "out"), "-j", jobs])
        assert code == 2
        assert "--jobs must be at least 1" in capsys.readouterr().err
        assert not (tmp_path / "out").exists()

    def test_all_requires_output_dir(self, deque, capsys):
        assert main([str(deque), "--all"]) == 2
        assert "--output-dir" in capsys.readouterr().err

    def test_all_isolates_failures(self, tmp_path, capsys):
        src = tmp_path / "src"
        src.mkdir()
        (src / "KTypeArrayDeque.java").write_text(DEQUE)
        (src / "KTypeBroken.java").write_text("class KTypeBroken<KType> {")
        out = tmp_path / "out"
        assert main([str(src), "--all", "--ktype", "int", "--output-dir", str(out)]) == 2
        assert (out / "IntArrayDeque.java").exists()
        assert "1 failed" in capsys.readouterr().err

    def test_manifest(self, tmp_path, capsys):
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "KTypeArrayDeque.java").write_text(DEQUE)
        manifest = tmp_path / "templates.toml"
        manifest.write_text(
            '[templates]\nsource = "templates"\noutput = "gen"\nktypes = ["generic", "char"]\n')
        assert main(["--manifest", str(manifest)]) == 0
        assert (tmp_path / "gen" / "CharArrayDeque.java").read_text() == (
            "public class CharArrayDeque { char[] buffer; }\n")
        assert (tmp_path / "gen" / "ObjectArrayDeque.java").exists()

    def test_bad_manifest(self, tmp_path, capsys):
        manifest = tmp_path / "templates.toml"
        manifest.write_text("[templates]\n")
        assert main(["--manifest", str(manifest)]) == 2
        assert "TE5002" in capsys.readouterr().err


def test_source_required(capsys):
    assert main([]) == 2
    assert "source file required" in capsys.readouterr().err
