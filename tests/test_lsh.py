"""Tests for LSH banding and the bucket index."""

import pytest

from code_dna.errors import ConfigurationError
from code_dna.lsh import LSHIndex, bucket_id, collision_probability, generate_bands


def test_generate_bands():
    """Test a signature is cut into contiguous slices."""
    signature = tuple(range(16))
    bands = generate_bands(signature, num_bands=4, rows_per_band=4)

    assert [b.band_index for b in bands] == [0, 1, 2, 3]
    assert bands[1].band_signature_slice == (4, 5, 6, 7)
    assert bands[1].bucket_id == bucket_id((4, 5, 6, 7))
    assert len(bands[0].bucket_id) == 32


def test_generate_bands_size_mismatch():
    """Test bands that do not cover the signature are rejected."""
    with pytest.raises(ConfigurationError):
        generate_bands(tuple(range(16)), num_bands=5, rows_per_band=3)


def test_equal_slices_share_bucket_ids():
    assert bucket_id((1, 2, 3)) == bucket_id([1, 2, 3])
    assert bucket_id((1, 2, 3)) != bucket_id((1, 2, 4))


def test_index_candidate_pairs():
    """Test items sharing any band become candidates."""
    index = LSHIndex(num_bands=2, rows_per_band=2)
    index.add(0, (1, 2, 3, 4))
    index.add(1, (1, 2, 9, 9))   # shares band 0 with item 0
    index.add(2, (7, 7, 3, 4))   # shares band 1 with item 0
    index.add(3, (5, 6, 8, 8))   # shares nothing

    assert len(index) == 4
    assert index.candidate_pairs() == [(0, 1), (0, 2)]
    assert index.query((1, 2, 0, 0)) == {0, 1}


def test_index_keys_include_band_position():
    """Test equal slices in different bands do not collide."""
    index = LSHIndex(num_bands=2, rows_per_band=2)
    index.add(0, (1, 2, 3, 4))
    index.add(1, (3, 4, 1, 2))

    assert index.candidate_pairs() == []
    assert index.bucket_count == 4


def test_candidate_pairs_are_deduplicated():
    index = LSHIndex(num_bands=4, rows_per_band=1)
    index.add(0, (1, 2, 3, 4))
    index.add(1, (1, 2, 3, 4))

    assert index.candidate_pairs() == [(0, 1)]


def test_collision_probability():
    """Test the S-curve at its extremes."""
    assert collision_probability(1.0, 16, 8) == 1.0
    assert collision_probability(0.0, 16, 8) == 0.0
    assert collision_probability(0.9, 16, 8) > 0.99
    assert collision_probability(0.3, 16, 8) < 0.01
