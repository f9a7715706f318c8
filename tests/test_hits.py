"""
Tests of the event hit processor: channel routing, selection groups,
shield handling and input validation.
"""

import math

import numpy as np
import pytest

from scint_array import (
    ArraySpec,
    BGO_RESOLUTION,
    CEBR3_RESOLUTION,
    CRYSTAL_COLLECTION,
    EventHitProcessor,
    HitCollections,
    IndexOutOfRange,
    InvalidSelection,
    KEV,
    LABR3_RESOLUTION,
    MalformedDeposits,
    MissingCollection,
    SHIELD_COLLECTION,
    SelectionGroup,
    build_array,
    canonical_selection_groups,
    default_selection_groups,
)
from scint_array.core.data_classes import Element
from scint_array.core.hits import aggregate_channel, raw_aggregate_channel, shield_channel
from scint_array.core.materials import define_material


def _processor(geometry, seed=1, **kwargs):
    processor = EventHitProcessor(geometry, rng=np.random.default_rng(seed), **kwargs)
    processor.begin_run(HitCollections.from_geometry(geometry))
    return processor


class TestSelectionGroups:
    """Subsets of crystals defined by an excluded ring."""

    def test_crystals30(self):
        members = canonical_selection_groups()[0].members(3, 1, 15)
        assert set(members) == set(range(1, 46)) - set(range(3, 46, 3))

    def test_crystals40(self):
        members = canonical_selection_groups()[1].members(3, 1, 15)
        # last ring left out in the first five segments only
        assert set(members) == set(range(1, 46)) - {3, 6, 9, 12, 15}

    def test_nominal_size_mismatch(self):
        with pytest.raises(InvalidSelection):
            canonical_selection_groups()[0].members(3, 1, 6)

    def test_bad_ring(self):
        with pytest.raises(InvalidSelection):
            SelectionGroup("g", excluded_ring=5).members(3, 1, 15)

    def test_bad_segments(self):
        with pytest.raises(InvalidSelection):
            SelectionGroup("g", segments=(20,)).members(3, 1, 15)

    def test_default_groups_follow_layout(self, default_geometry):
        assert [g.name for g in default_selection_groups(default_geometry)] == ["crystals30", "crystals40"]
        small = build_array(ArraySpec.from_config(segments=6, check_overlaps=False))
        assert default_selection_groups(small) == ()

    def test_processor_rejects_mismatched_groups(self):
        small = build_array(ArraySpec.from_config(segments=6, check_overlaps=False))
        with pytest.raises(InvalidSelection):
            EventHitProcessor(small)


class TestChannels:
    """Histogram indices."""

    def test_indices(self):
        assert aggregate_channel(45, 0) == 46
        assert aggregate_channel(45, 2) == 48
        assert raw_aggregate_channel(45, 2, 0) == 49
        assert raw_aggregate_channel(45, 2, 2) == 51
        assert shield_channel(45, 100) == 47
        assert shield_channel(45, 114) == 61


class TestProcessor:
    """Routing of crystal deposits."""

    def test_single_hit(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {1: 661.7 * KEV})
        sink = processor.sink
        assert len(summary.crystal_hits) == 1
        hit = summary.crystal_hits[0]
        assert hit.raw_energy == pytest.approx(661.7)
        assert hit.groups == ("crystals30", "crystals40")
        for channel in (1, 46, 47, 48, 49, 50, 51):
            assert sink.h1(channel).entries == 1
        assert sink.h1(2) is None
        assert summary.nb_fired == 1

    def test_last_ring_skips_groups(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {3: 0.5})
        assert summary.crystal_hits[0].groups == ()
        sink = processor.sink
        assert sink.h1(46).entries == 1 and sink.h1(49).entries == 1
        assert sink.h1(47) is None and sink.h1(48) is None

    def test_crystals40_only(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {18: 0.5})
        assert summary.crystal_hits[0].groups == ("crystals40",)

    def test_raw_channels_not_smeared(self, default_geometry):
        processor = _processor(default_geometry)
        processor.process_deposits(0, {2: 1.0})
        raw = processor.sink.h1(49)
        assert raw.mean == pytest.approx(1000.0)

    def test_multiplicity_and_rows(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(7, {5: 0.2, 2: 0.3})
        assert [h.copy_number for h in summary.crystal_hits] == [2, 5]
        assert summary.nb_fired == 2
        frame = processor.sink.rows_frame()
        assert list(frame["copy_nb"]) == [2, 5]
        assert set(frame["event_id"]) == {7}
        assert list(frame.columns[:4]) == ["event_id", "copy_nb", "energy_res", "energy_raw"]
        assert "crystals30_res" in frame.columns and "crystals40_raw" in frame.columns

    def test_zero_deposit_not_fired(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {1: 0.0})
        assert summary.nb_fired == 0
        assert summary.crystal_hits[0].energy == 0.0

    def test_empty_event(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {})
        assert summary.crystal_hits == []
        assert processor.events_processed == 1
        assert processor.sink.rows == []

    def test_no_groups(self):
        geometry = build_array(ArraySpec.from_config(segments=6, check_overlaps=False))
        processor = _processor(geometry, groups=())
        processor.process_deposits(0, {18: 0.5})
        # total at N+1, raw total right after it
        assert processor.sink.h1(19).entries == 1
        assert processor.sink.h1(20).entries == 1

    def test_other_material_unsmeared(self):
        sodium = Element("Sodium", "Na", 11.0, 22.99)
        iodine = Element("Iodine", "I", 53.0, 126.9)
        nai = define_material("NaI", 3.67, [(sodium, 1), (iodine, 1)])
        geometry = build_array(ArraySpec.from_config(
            crystal_material="NaI", custom_crystal_material=nai, check_overlaps=False,
        ))
        processor = _processor(geometry)
        assert processor.resolution is None
        hit = processor.process_deposits(0, {4: 0.6617}).crystal_hits[0]
        assert hit.energy == hit.raw_energy

    def test_seeded_runs_identical(self, default_geometry):
        a = _processor(default_geometry, seed=3).process_deposits(0, {1: 0.5, 9: 0.8})
        b = _processor(default_geometry, seed=3).process_deposits(0, {1: 0.5, 9: 0.8})
        assert a.energies_by_copy() == b.energies_by_copy()


class TestValidation:
    """Malformed input is rejected before anything reaches the sink."""

    def test_copy_number_out_of_range(self, default_geometry):
        processor = _processor(default_geometry)
        with pytest.raises(IndexOutOfRange):
            processor.process_deposits(0, {1: 0.5, 46: 0.1})
        with pytest.raises(IndexOutOfRange):
            processor.process_deposits(0, {0: 0.5})
        assert processor.sink.histograms == {}
        assert processor.sink.rows == []
        assert processor.events_processed == 0

    @pytest.mark.parametrize("deposit", [-0.1, math.nan, math.inf, "abc", None])
    def test_bad_energies(self, default_geometry, deposit):
        processor = _processor(default_geometry)
        with pytest.raises(MalformedDeposits):
            processor.process_deposits(0, {1: deposit})
        assert processor.sink.histograms == {}

    def test_bad_copy_number(self, default_geometry):
        processor = _processor(default_geometry)
        with pytest.raises(MalformedDeposits):
            processor.process_deposits(0, {1.5: 0.1})

    def test_infinite_copy_number(self, default_geometry):
        processor = _processor(default_geometry)
        with pytest.raises(MalformedDeposits):
            processor.process_deposits(0, {math.inf: 0.5})

    def test_numpy_copy_numbers_accepted(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {np.int64(2): np.float64(0.1)})
        assert summary.crystal_hits[0].copy_number == 2


class TestCollections:
    """Hit collection lookup at run start and per event."""

    def test_ids(self, shielded_geometry):
        collections = HitCollections.from_geometry(shielded_geometry)
        assert collections.collection_id(CRYSTAL_COLLECTION) == 0
        assert collections.collection_id(SHIELD_COLLECTION) == 1

    def test_missing_shield_collection(self, shielded_geometry):
        processor = EventHitProcessor(shielded_geometry)
        with pytest.raises(MissingCollection):
            processor.begin_run(HitCollections([CRYSTAL_COLLECTION]))

    def test_process_event(self, default_geometry):
        collections = HitCollections.from_geometry(default_geometry)
        processor = EventHitProcessor(default_geometry, rng=np.random.default_rng(0))
        processor.begin_run(collections)
        summary = processor.process_event(0, {collections.collection_id(CRYSTAL_COLLECTION): {1: 0.3}})
        assert len(summary.crystal_hits) == 1

    def test_event_without_crystal_collection(self, default_geometry):
        processor = _processor(default_geometry)
        with pytest.raises(MissingCollection):
            processor.process_event(0, {5: {1: 0.3}})

    def test_begin_run_required(self, default_geometry):
        processor = EventHitProcessor(default_geometry)
        with pytest.raises(RuntimeError):
            processor.process_event(0, {0: {}})


class TestShieldRouting:
    """Deposits in the suppression shield."""

    def test_shield_histogram(self, shielded_geometry):
        processor = _processor(shielded_geometry)
        summary = processor.process_deposits(0, {1: 0.5}, {100: 0.2, 104: 0.1})
        sink = processor.sink
        assert sorted(sink.shield_histograms) == [47, 51]
        assert [h.shield_index for h in summary.shield_hits] == [0, 4]
        assert summary.nb_shield_fired == 2
        # shield hits stay out of the crystal family
        assert sink.h1(47) is not None and sink.h1(47).entries == 1

    def test_low_copy_numbers_ignored(self, shielded_geometry, capsys):
        processor = _processor(shielded_geometry)
        summary = processor.process_deposits(0, {1: 0.5}, {5: 0.2})
        assert summary.shield_hits == []
        assert processor.sink.shield_histograms == {}
        assert "[warning]" in capsys.readouterr().out

    def test_shield_out_of_range(self, shielded_geometry):
        processor = _processor(shielded_geometry)
        with pytest.raises(IndexOutOfRange):
            processor.process_deposits(0, {1: 0.5}, {115: 0.2})
        assert processor.sink.histograms == {}

    def test_shield_row_columns(self, shielded_geometry):
        processor = _processor(shielded_geometry)
        processor.process_deposits(0, {1: 0.5}, {100: 0.2, 101: 0.3})
        row = processor.sink.rows[0]
        assert row["shield_nb_fired"] == 2
        assert row["shield_energy_raw"] == pytest.approx(500.0)

    def test_shield_deposits_without_shield(self, default_geometry):
        processor = _processor(default_geometry)
        with pytest.raises(MalformedDeposits, match="100"):
            processor.process_deposits(0, {1: 0.5}, {100: 0.3})
        assert processor.sink.histograms == {}
        assert processor.sink.rows == []
        assert processor.events_processed == 0

    def test_empty_shield_map_without_shield(self, default_geometry):
        processor = _processor(default_geometry)
        summary = processor.process_deposits(0, {1: 0.5}, {})
        assert summary.shield_hits == []
        assert "shield_nb_fired" not in processor.sink.rows[0]

    def test_shield_uses_bgo_resolution(self, shielded_geometry):
        processor = _processor(shielded_geometry, seed=11)
        energies = []
        for event_id in range(400):
            summary = processor.process_deposits(event_id, {}, {100 + k: 0.662 for k in range(15)})
            energies.extend(hit.energy for hit in summary.shield_hits)
        spread = np.std(energies)
        assert len(energies) == 6000
        assert spread == pytest.approx(BGO_RESOLUTION.sigma(662.0), rel=0.05)
        assert abs(spread - CEBR3_RESOLUTION.sigma(662.0)) > 0.5 * CEBR3_RESOLUTION.sigma(662.0)


class TestCrystalResolution:
    """Crystal deposits follow the resolution of the crystal material."""

    def test_labr3_crystals(self):
        geometry = build_array(ArraySpec.from_config(crystal_material="LaBr3", check_overlaps=False))
        processor = _processor(geometry, seed=12)
        assert processor.resolution is LABR3_RESOLUTION
        energies = []
        for event_id in range(100):
            summary = processor.process_deposits(event_id, {c: 0.662 for c in range(1, 46)})
            energies.extend(hit.energy for hit in summary.crystal_hits)
        spread = np.std(energies)
        np.testing.assert_allclose(np.mean(energies), 662.0, rtol=0.01)
        assert spread == pytest.approx(LABR3_RESOLUTION.sigma(662.0), rel=0.05)
        assert abs(spread - CEBR3_RESOLUTION.sigma(662.0)) > 0.2 * CEBR3_RESOLUTION.sigma(662.0)
