import pytest

from bucketarr.errors import ProbeFailed
from bucketarr.extractor.probe import parse_probe_output, probe

from fakes import make_item, script_tool


def test_parse_probe_output_reads_extension_and_size():
    meta = parse_probe_output("mp4,1048576\n")
    assert meta.extension == "mp4"
    assert meta.expected_size == 1048576


@pytest.mark.parametrize("raw", ["webm,NA", "webm,", "webm,-5", "webm,abc"])
def test_unknown_size_becomes_zero(raw):
    assert parse_probe_output(raw).expected_size == 0


def test_last_line_wins_when_tool_prints_noise():
    assert parse_probe_output("warning text\nmkv,12\n").extension == "mkv"


@pytest.mark.parametrize("raw", ["", "\n", "mp4", "NA,100", ",100"])
def test_unparsable_output_raises(raw):
    with pytest.raises(ProbeFailed):
        parse_probe_output(raw)


def test_probe_runs_probe_mode():
    tool = script_tool(probe_src="print('m4a,2048')")
    meta = probe(tool, make_item(1), "bestaudio")
    assert (meta.extension, meta.expected_size) == ("m4a", 2048)


def test_probe_tool_failure_is_item_error():
    tool = script_tool(probe_src="import sys\nsys.stderr.write('ERROR: private video')\nsys.exit(1)")
    with pytest.raises(ProbeFailed, match="private video"):
        probe(tool, make_item(1), "best")
