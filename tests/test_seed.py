import threading

import pytest

from corpus import CorpusFetchCancelled, LocalPrimeCorpus
from errors import EmptyCandidatePoolError, InvalidModulusError, NotPrimeError, SourceUnavailableError
from obfuscation import is_inverse_pair
from primes import MAX_INT, mod_inverse
from seed import (
    SeedGenerator, SecureRandom, extract_window, generate_seed, parse_candidates, select_prime,
)

FIVE_PRIMES = b"... 101 103 107 109 113 ..."


# ===================================
# 1. Window, parsing and selection
# ===================================

def test_extract_window_is_clamped_to_header_and_end(corpus_header):
    content = corpus_header + b"11 13 17"
    assert extract_window(content, 67) == b"11 13 17"
    assert extract_window(content, len(content) - 1, radius=2) == b" 17"


def test_parse_candidates_keeps_order_and_drops_noise():
    assert parse_candidates(b"... 101 abc 103\n107\t1e5 -3 +7 109") == [101, 103, 107, 109]


def test_parse_candidates_drops_values_above_64_bits():
    assert parse_candidates(b"18446744073709551616 5 18446744073709551557") == [5, 18446744073709551557]


def test_parse_candidates_empty_window():
    assert parse_candidates(b"") == []
    assert parse_candidates(b"   \n ") == []


def test_select_largest_of_two_or_fewer(scripted_random):
    rng = scripted_random([])
    assert select_prime([5], rng) == 5
    assert select_prime([104729, 3], rng) == 104729
    assert rng.calls == []


def test_select_exact_middle_of_odd_count(scripted_random):
    rng = scripted_random([])
    assert select_prime([101, 103, 107, 109, 113], rng) == 107
    # position, not value order
    assert select_prime([50, 3, 20], rng) == 3
    assert rng.calls == []


def test_select_even_count_uses_coin_flip(scripted_random):
    rng = scripted_random([0, 1])
    assert select_prime([11, 13, 17, 19], rng) == 17
    assert select_prime([11, 13, 17, 19], rng) == 13
    assert rng.calls == [(0, 1), (0, 1)]


def test_select_from_empty_pool():
    with pytest.raises(EmptyCandidatePoolError):
        select_prime([], SecureRandom())


# ===================================
# 2. Secure random source
# ===================================

def test_secure_random_stays_in_bounds():
    rng = SecureRandom()
    draws = [rng.randint(1, 50) for _ in range(500)]
    assert min(draws) >= 1
    assert max(draws) <= 50
    assert rng.randint(7, 7) == 7


def test_secure_random_rejects_empty_range():
    with pytest.raises(ValueError):
        SecureRandom().randint(5, 4)


# ===================================
# 3. Seed generation
# ===================================

def test_generate_selects_middle_of_five(corpus_header, scripted_random, recording_provider):
    content = corpus_header + FIVE_PRIMES
    provider = recording_provider(content)
    rng = scripted_random([7, 80, 42])

    result = SeedGenerator(provider, rng=rng, window_radius=10).generate()

    assert result.shard == 7
    assert provider.requested == [7]
    assert result.codec.as_tuple() == (107, mod_inverse(107), 42)
    assert rng.calls == [(1, 50), (67, len(content) - 1), (1, MAX_INT - 1)]


def test_generate_with_default_window_truncating_last_token(corpus_header, scripted_random, recording_provider):
    # An 18 byte window around '107' cuts '113' down to '11'; 107 is still the middle.
    provider = recording_provider(corpus_header + FIVE_PRIMES)
    result = SeedGenerator(provider, rng=scripted_random([1, 80, 42])).generate()
    assert result.codec.prime == 107


@pytest.mark.parametrize("coin, expected", [(0, 19), (1, 17)])
def test_generate_even_pool_tie_break(corpus_header, scripted_random, recording_provider, coin, expected):
    provider = recording_provider(corpus_header + b"11 13 17 19 23 29")
    result = SeedGenerator(provider, rng=scripted_random([3, 75, coin, 99])).generate()
    assert result.codec.prime == expected
    assert is_inverse_pair(result.codec.prime, result.codec.mod_inverse)


def test_generate_two_candidates_picks_largest(corpus_header, scripted_random, recording_provider):
    provider = recording_provider(corpus_header + b"3 104729")
    result = SeedGenerator(provider, rng=scripted_random([50, 70, 1])).generate()
    assert result.codec.prime == 104729
    assert result.codec.random == 1


def test_tie_break_is_roughly_even():
    trials = 2000
    provider = lambda shard, cancel=None: b"11 13 17 19"
    generator = SeedGenerator(provider, header_size=0, window_radius=20)

    counts = {13: 0, 17: 0}
    for _ in range(trials):
        counts[generator.generate().codec.prime] += 1

    assert counts[13] + counts[17] == trials
    assert 0.4 * trials < counts[13] < 0.6 * trials


def test_generated_mask_is_never_zero():
    provider = lambda shard, cancel=None: b"7"
    generator = SeedGenerator(provider, header_size=0)
    for _ in range(50):
        result = generator.generate()
        assert 1 <= result.codec.random <= MAX_INT - 1
        assert 1 <= result.shard <= 50


def test_generate_seed_shortcut(scripted_random, recording_provider):
    provider = recording_provider(b"5 7 11")
    result = generate_seed(provider, rng=scripted_random([2, 1, 9]), header_size=0)
    assert result.codec.prime == 7
    assert result.shard == 2


# ===================================
# 4. Failures
# ===================================

def test_provider_failure_is_source_unavailable(scripted_random, recording_provider):
    cause = OSError("connection reset")
    provider = recording_provider(error=cause)

    with pytest.raises(SourceUnavailableError) as exc_info:
        SeedGenerator(provider, rng=scripted_random([12])).generate()

    assert exc_info.value.cause is cause
    assert exc_info.value.shard == 12
    assert exc_info.value.step == "fetch"
    assert "shard=12" in str(exc_info.value)


def test_cancelled_fetch_is_source_unavailable(tmp_path, scripted_random):
    cancel = threading.Event()
    cancel.set()
    generator = SeedGenerator(LocalPrimeCorpus(str(tmp_path)), rng=scripted_random([4]))

    with pytest.raises(SourceUnavailableError) as exc_info:
        generator.generate(cancel)

    assert isinstance(exc_info.value.cause, CorpusFetchCancelled)
    assert exc_info.value.shard == 4


def test_cancel_during_fetch_is_reported(scripted_random):
    cancel = threading.Event()

    def provider(shard, cancel_event=None):
        cancel.set()
        return b"5 7 11"

    with pytest.raises(SourceUnavailableError):
        SeedGenerator(provider, rng=scripted_random([1]), header_size=0).generate(cancel)


def test_content_shorter_than_header(corpus_header, scripted_random, recording_provider):
    provider = recording_provider(corpus_header[:60])
    with pytest.raises(EmptyCandidatePoolError) as exc_info:
        SeedGenerator(provider, rng=scripted_random([9])).generate()
    assert exc_info.value.step == "sample"
    assert exc_info.value.shard == 9


def test_window_without_numbers(corpus_header, scripted_random, recording_provider):
    provider = recording_provider(corpus_header + b"primes primes primes")
    with pytest.raises(EmptyCandidatePoolError) as exc_info:
        SeedGenerator(provider, rng=scripted_random([5, 70])).generate()
    assert exc_info.value.step == "parse"
    assert exc_info.value.shard == 5


def test_selected_composite_is_rejected(corpus_header, scripted_random, recording_provider):
    provider = recording_provider(corpus_header + b"100 200 300")
    with pytest.raises(NotPrimeError) as exc_info:
        SeedGenerator(provider, rng=scripted_random([8, 72])).generate()
    assert exc_info.value.value == 200
    assert exc_info.value.step == "certify"
    assert exc_info.value.shard == 8


def test_selected_two_has_no_inverse(corpus_header, scripted_random, recording_provider):
    provider = recording_provider(corpus_header + b"  2  ")
    with pytest.raises(InvalidModulusError) as exc_info:
        SeedGenerator(provider, rng=scripted_random([6, 69])).generate()
    assert exc_info.value.step == "certify"


def test_generate_from_local_archives(tmp_path, corpus_header, make_zip, scripted_random):
    (tmp_path / "primes7.zip").write_bytes(make_zip(corpus_header + FIVE_PRIMES, "primes7.txt"))
    generator = SeedGenerator(LocalPrimeCorpus(str(tmp_path)), rng=scripted_random([7, 80, 42]), window_radius=10)

    result = generator.generate()

    assert result.shard == 7
    assert result.codec.prime == 107
    assert result.codec.decode(result.codec.encode(31337)) == 31337
