"""Tests for file-level operations."""

import logging
import os

import pytest
from conftest import box, build_mp4, sa3d_content

from spatialbox import (
    BoxInfo,
    MissingMandatoryBoxError,
    SA3DBox,
    SpatialAudioInfo,
    describe_structure,
    dump_structure,
    get_spatial_audio,
    inject_spatial_audio,
    open_mp4,
    write_mp4,
)
from spatialbox.metadata import iter_audio_sample_entries


@pytest.fixture
def write_sample(tmp_path):
    """Write a built sample to disk and return its path."""

    def _write(sample, name="sample.mp4"):
        path = tmp_path / name
        path.write_bytes(sample.data)
        return str(path)

    return _write


class TestOpen:
    """Test opening files."""

    def test_open(self, mp4_file, sample):
        tree = open_mp4(mp4_file)
        assert tree.size() == len(sample.data)
        assert tree.first_mdat_pos == sample.mdat_content_pos

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            open_mp4(str(tmp_path / "missing.mp4"))

    def test_not_an_mp4(self, tmp_path):
        """Test a file of well-formed but unrelated boxes is rejected."""
        path = tmp_path / "other.bin"
        path.write_bytes(box(b"abcd", b"1234"))
        with pytest.raises(MissingMandatoryBoxError):
            open_mp4(str(path))


class TestAudioSampleEntries:
    """Test finding audio sample entries."""

    def test_only_sound_tracks(self, mp4_file):
        """Test the video track is ignored."""
        entries = list(iter_audio_sample_entries(open_mp4(mp4_file)))
        assert len(entries) == 1
        track_index, entry = entries[0]
        assert track_index == 0
        assert entry.name == "mp4a"
        assert entry.channel_count == 4


class TestInject:
    """Test SA3D injection."""

    def test_inject(self, mp4_file):
        tree = open_mp4(mp4_file)
        assert inject_spatial_audio(tree, 4) == 1
        entry = next(iter_audio_sample_entries(tree))[1]
        assert [b.tag for b in entry] == [b"SA3D"]

    def test_replaces_existing(self, write_sample):
        """Test an existing SA3D box is replaced, not duplicated."""
        sample = build_mp4(entry_children=box(b"SA3D", sa3d_content(4, 1)))
        tree = open_mp4(write_sample(sample))
        entry = next(iter_audio_sample_entries(tree))[1]
        assert isinstance(entry.find(b"SA3D"), SA3DBox)

        assert inject_spatial_audio(tree, 4) == 1
        assert len(entry.find_all(b"SA3D")) == 1
        assert tree.payload_delta() == 0

    def test_keeps_other_children(self, write_sample):
        """Test unknown sample entry children survive injection."""
        sample = build_mp4(entry_children=box(b"esds", b"\x00" * 20))
        tree = open_mp4(write_sample(sample))
        inject_spatial_audio(tree, 4)
        entry = next(iter_audio_sample_entries(tree))[1]
        assert [b.tag for b in entry] == [b"esds", b"SA3D"]

    def test_channel_mismatch_skipped(self, mp4_file, caplog):
        """Test tracks with another channel count are left alone."""
        tree = open_mp4(mp4_file)
        with caplog.at_level(logging.WARNING, logger="spatialbox.metadata"):
            assert inject_spatial_audio(tree, 9) == 0
        assert "skipping" in caplog.text
        assert tree.payload_delta() == 0

    @pytest.mark.parametrize("channels", [0, 3, 5])
    def test_invalid_channel_count(self, mp4_file, channels):
        tree = open_mp4(mp4_file)
        with pytest.raises(ValueError):
            inject_spatial_audio(tree, channels)


class TestWrite:
    """Test writing files."""

    def test_write_unmodified(self, mp4_file, sample, tmp_path):
        dest = str(tmp_path / "copy.mp4")
        write_mp4(open_mp4(mp4_file), mp4_file, dest)
        with open(dest, "rb") as f:
            assert f.read() == sample.data

    def test_refuses_source(self, mp4_file):
        tree = open_mp4(mp4_file)
        with pytest.raises(ValueError):
            write_mp4(tree, mp4_file, mp4_file)

    def test_inject_and_reopen(self, mp4_file, sample, tmp_path):
        """Test the written SA3D box reads back."""
        tree = open_mp4(mp4_file)
        inject_spatial_audio(tree, 4)
        dest = str(tmp_path / "spatial.mp4")
        write_mp4(tree, mp4_file, dest)

        assert os.path.getsize(dest) == len(sample.data) + 36
        info = get_spatial_audio(open_mp4(dest))
        assert len(info) == 1
        assert info[0].track_index == 0
        assert info[0].sample_entry == "mp4a"
        assert info[0].ambisonic_order == 1
        assert info[0].channel_map == [0, 1, 2, 3]


class TestDescribe:
    """Test structure descriptions."""

    def test_no_spatial_audio(self, mp4_file):
        assert get_spatial_audio(open_mp4(mp4_file)) == []

    def test_spatial_audio_model(self, write_sample):
        sample = build_mp4(channels=9, entry_children=box(b"SA3D", sa3d_content(9, 2)))
        info = get_spatial_audio(open_mp4(write_sample(sample)))
        assert isinstance(info[0], SpatialAudioInfo)
        assert info[0].normalization == "SN3D"
        assert info[0].channel_ordering == "ACN"
        assert info[0].ambisonic_type == "periphonic"
        assert info[0].summary.startswith("SN3D, ACN, periphonic, Order 2, 9 Channel(s)")

    def test_describe_structure(self, mp4_file, sample):
        boxes = describe_structure(open_mp4(mp4_file))
        assert all(isinstance(b, BoxInfo) for b in boxes)
        top = [b for b in boxes if b.depth == 0]
        assert [b.type for b in top] == ["ftyp", "moov", "mdat"]
        assert sum(b.size for b in top) == len(sample.data)

        kinds = {b.type: b.kind for b in boxes}
        assert kinds["moov"] == "ContainerBox"
        assert kinds["mdat"] == "RawBox"
        assert kinds["stsd"] == "SampleDescriptionBox"
        assert kinds["mp4a"] == "AudioSampleEntry"
        assert kinds["hdlr"] == "HandlerBox"
        assert kinds["stco"] == "ChunkOffsetBox"

        mdat = top[-1]
        assert mdat.offset + mdat.header_size == sample.mdat_content_pos

    def test_dump_structure(self, mp4_file):
        text = dump_structure(open_mp4(mp4_file))
        assert text.startswith("mpeg4 [")
        assert " ├──moov [8, " in text
        assert "mp4a [8, " in text
        assert text.endswith("\n")
