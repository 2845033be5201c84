from note_catalog import BASS, SHARP, TREBLE, Note, NoteCatalog, distinct_pitch_count


def test_standard_catalog_counts(catalog):
    assert len(catalog.naturals(TREBLE)) == 15
    assert len(catalog.naturals(BASS)) == 13
    assert len(catalog.sharps(TREBLE)) + len(catalog.sharps(BASS)) == 21
    assert len(catalog) == 49


def test_no_sharps_for_e_and_b(catalog):
    assert catalog.get("E", SHARP, 4) is None
    assert catalog.get("B", SHARP, 3) is None
    assert catalog.get("F", SHARP, 4) is not None


def test_note_id_and_label(catalog):
    f_sharp = catalog.get("F", SHARP, 4)
    assert f_sharp.note_id == "Fsharp4"
    assert f_sharp.label == "F# 4"
    assert catalog.find("Fsharp4") == f_sharp
    assert catalog.find("H9") is None


def test_same_pitch_ignores_clef_and_position(catalog):
    c4 = catalog.get("C", None, 4)
    displaced = Note(name="C", clef=BASS, position=6, is_space=False, octave=4)
    assert c4.same_pitch(displaced)
    assert not c4.same_pitch(None)
    assert not c4.same_pitch(catalog.get("C", SHARP, 4))
    assert distinct_pitch_count([c4, displaced]) == 1


def test_ledger_rule(catalog):
    assert catalog.get("C", None, 4).is_ledger
    assert catalog.get("C", None, 4).is_below_staff
    assert not catalog.get("F", None, 4).is_ledger
    assert catalog.get("C", None, 6).is_above_staff
    assert catalog.get("C", None, 2).is_ledger


def test_clef_split_by_octave(catalog):
    assert all(note.octave < 4 for note in catalog.by_clef(BASS))
    assert all(note.octave >= 4 for note in catalog.by_clef(TREBLE))


def test_octave_range(catalog):
    top = catalog.in_octave_range(6, 6)
    assert sorted(note.note_id for note in top) == ["C6", "Csharp6"]


def test_frequency_of_concert_a(catalog):
    assert abs(catalog.get("A", None, 4).frequency_hz - 440.0) < 1e-9
    assert catalog.get("C", None, 4).midi_number == 60


def test_empty_catalog():
    empty = NoteCatalog.empty()
    assert len(empty) == 0
    assert empty.all_notes() == []


def test_catalog_deduplicates_ids(note_f):
    catalog = NoteCatalog([note_f, note_f])
    assert len(catalog) == 1
    assert note_f in catalog
    assert "F4" not in catalog
