import pytest
from streams import Stream


class TestMatching:
    """Test match and find terminal operations"""
    
    def test_all_and_any_match(self, words):
        upper = Stream.from_collection(words).map(str.upper).to_list()
        assert upper == ["ONE", "TWO", "THREE", "FOUR", "TWO"], f"Unexpected result: {upper}"
        
        assert not Stream.from_collection(upper).all_match(lambda w: "T" in w)
        assert Stream.from_collection(upper).any_match(lambda w: "T" in w)
        assert not Stream.from_collection(upper).none_match(lambda w: "T" in w)
        assert Stream.from_collection(upper).none_match(lambda w: "Z" in w)
    
    def test_empty_stream_matching(self):
        """Vacuous truth for all/none, false for any"""
        assert Stream.empty().all_match(lambda x: False) is True
        assert Stream.empty().none_match(lambda x: True) is True
        assert Stream.empty().any_match(lambda x: True) is False
    
    def test_all_match_short_circuits(self):
        checked = []
        
        def small(x):
            checked.append(x)
            return x < 3
        
        assert not Stream.range(0, 100).all_match(small)
        assert checked == [0, 1, 2, 3], f"Checked too many elements: {checked}"
    
    def test_find_first(self, numbers):
        assert Stream.from_collection(numbers).find_first().get() == 1
        assert Stream.from_collection(numbers).filter(lambda n: n > 3).find_first().get() == 4
        assert Stream.from_collection(numbers).filter(lambda n: n > 10).find_first().is_empty()
    
    def test_find_any_sequential_is_first(self, numbers):
        """Sequential find_any returns the first qualifying element"""
        assert Stream.from_collection(numbers).filter(lambda n: n > 2).find_any().get() == 3
        assert Stream.empty().find_any().is_empty()
    
    def test_for_each_in_encounter_order(self, numbers):
        seen = []
        Stream.from_collection(numbers).map(lambda n: n * n).for_each(seen.append)
        assert seen == [1, 4, 9, 16, 25]
