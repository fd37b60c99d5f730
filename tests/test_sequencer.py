from concurrent.futures import ThreadPoolExecutor

from rtpkit.sequencer import Sequencer, fixed_sequencer, random_sequencer


def test_fixed_sequencer_starts_at_given_number():
    seq = fixed_sequencer(1234)
    assert seq.next_sequence_number() == 1234
    assert seq.next_sequence_number() == 1235
    assert seq.roll_over_count() == 0


def test_fixed_sequencer_wraps_and_counts_rollover():
    seq = fixed_sequencer(65535)
    assert seq.next_sequence_number() == 65535
    assert seq.roll_over_count() == 0
    assert seq.next_sequence_number() == 0
    assert seq.roll_over_count() == 1


def test_starting_at_zero_counts_as_rollover():
    seq = fixed_sequencer(0)
    assert seq.next_sequence_number() == 0
    assert seq.roll_over_count() == 1


def test_random_sequencer_starts_in_lower_half():
    for _ in range(50):
        first = random_sequencer().next_sequence_number()
        assert 1 <= first < (1 << 15)


def test_random_sequencer_is_consecutive():
    seq = random_sequencer()
    first = seq.next_sequence_number()
    assert seq.next_sequence_number() == first + 1


def test_full_cycle_rolls_over_once():
    seq = Sequencer(500)
    values = [seq.next_sequence_number() for _ in range(1 << 16)]
    assert sorted(values) == list(range(1 << 16))
    assert seq.roll_over_count() == 1
    assert seq.next_sequence_number() == 500


def test_concurrent_calls_yield_distinct_numbers():
    seq = fixed_sequencer(1)

    def draw(_):
        return [seq.next_sequence_number() for _ in range(1000)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        batches = list(pool.map(draw, range(8)))

    values = sorted(value for batch in batches for value in batch)
    assert values == list(range(1, 8001))
    assert seq.next_sequence_number() == 8001
    assert seq.roll_over_count() == 0