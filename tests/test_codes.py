import pytest

from visit_coupons.services.codes import (
    CODE_ALPHABET,
    CODE_LENGTH,
    CodeSpaceExhausted,
    fallback_code,
    generate_unique_code,
    looks_like_code,
    normalize_code,
    random_code,
)


class TestRandomCode:

    def test_length_and_alphabet(self):
        for _ in range(200):
            code = random_code()
            assert len(code) == CODE_LENGTH
            assert set(code) <= set(CODE_ALPHABET)
            assert looks_like_code(code)

    def test_codes_differ(self):
        assert len({random_code() for _ in range(50)}) > 1


class TestGenerateUniqueCode:

    def test_first_free_draw_is_returned(self):
        assert generate_unique_code(lambda c: False, draw=lambda: 'ABCD1234') == 'ABCD1234'

    def test_retries_past_collisions(self):
        draws = iter(['TAKEN001', 'TAKEN002', 'FREE0003'])
        taken = {'TAKEN001', 'TAKEN002'}
        code = generate_unique_code(lambda c: c in taken, draw=lambda: next(draws))
        assert code == 'FREE0003'

    def test_fallback_after_max_attempts(self):
        calls = []

        def exists(code):
            calls.append(code)
            return code == 'ZZZZZZZZ'

        code = generate_unique_code(exists, attempts=5, draw=lambda: 'ZZZZZZZZ', now_ms=1700000004321)
        assert code == 'ZZZZ4321'
        # five draws plus the fallback check
        assert len(calls) == 6

    def test_exhausted_when_fallback_is_taken_too(self):
        with pytest.raises(CodeSpaceExhausted):
            generate_unique_code(lambda c: True, attempts=3, draw=lambda: 'ZZZZZZZZ', now_ms=1700000004321)

    def test_fallback_code_shape(self):
        assert fallback_code('ABCDEFGH', now_ms=123456789) == 'ABCD6789'
        assert len(fallback_code('ABCDEFGH')) == CODE_LENGTH


class TestNormalize:

    @pytest.mark.parametrize('raw,expected', [
        ('zk8x2q1b', 'ZK8X2Q1B'),
        ('  ZK8X2Q1B \n', 'ZK8X2Q1B'),
        ('', ''),
        (None, ''),
        ('   ', ''),
        (12345678, ''),
        (['ZK8X2Q1B'], ''),
        ({'code': 'ZK8X2Q1B'}, ''),
    ])
    def test_normalize_code(self, raw, expected):
        assert normalize_code(raw) == expected

    @pytest.mark.parametrize('value,ok', [
        ('ZK8X2Q1B', True),
        ('zk8x2q1b', False),
        ('ZK8X2Q1', False),
        ('ZK8X2Q1B9', False),
        ('ZK8X-Q1B', False),
        ('', False),
    ])
    def test_looks_like_code(self, value, ok):
        assert looks_like_code(value) is ok
