from bpsites.core.source_ids import generated_to_original_id
from bpsites.core.source_ids import is_original_id
from bpsites.core.source_ids import make_breakpoint_id
from bpsites.core.source_ids import original_to_generated_id
from bpsites.protocol.structures import SourceLocation


def test_is_original_id():
    assert is_original_id("server1.conn1.child1/source27/originalSource-abc")
    assert not is_original_id("server1.conn1.child1/source27")


def test_original_to_generated_id():
    assert original_to_generated_id("gen-1/originalSource-abc") == "gen-1"
    assert original_to_generated_id("gen-1") == ""


def test_generated_to_original_round_trip():
    original = generated_to_original_id("gen-1", "webpack:///src/app.js")
    assert is_original_id(original)
    assert original_to_generated_id(original) == "gen-1"


def test_generated_to_original_is_stable_per_url():
    a = generated_to_original_id("gen-1", "a.js")
    assert a == generated_to_original_id("gen-1", "a.js")
    assert a != generated_to_original_id("gen-1", "b.js")


def test_make_breakpoint_id_ignores_url():
    a = SourceLocation("S", 7, 2, "a.src")
    b = SourceLocation("S", 7, 2, "b.src")
    assert make_breakpoint_id(a) == make_breakpoint_id(b) == "S:7:2"


def test_make_breakpoint_id_without_column():
    assert make_breakpoint_id(SourceLocation("S", 7)) == "S:7:"
    assert make_breakpoint_id(SourceLocation("S", 7, 0)) == "S:7:0"
