"""Tests for run detection."""

from src.match_engine import Coordinate, find_matches, get_matched_types, grid_to_types, has_matches
from src.match_engine.cascade import remove_matches

from conftest import BASE_ROWS, RUN_ROWS


class TestFindMatches:
    """Test run detection across rows and columns."""

    def test_stable_grid_has_no_matches(self, make_grid):
        """The alternating base grid contains no runs."""
        grid = make_grid(BASE_ROWS)
        assert find_matches(grid) == set()
        assert has_matches(grid) is False

    def test_horizontal_run_of_three(self, make_grid):
        """Row 2, columns 1-3 is reported exactly."""
        grid = make_grid(RUN_ROWS)
        assert find_matches(grid) == {Coordinate(2, 1), Coordinate(2, 2), Coordinate(2, 3)}

    def test_vertical_run(self, make_grid):
        """A column run is detected as well."""
        rows = list(BASE_ROWS)
        rows[1] = "GRGBYR"
        rows[3] = "GRGBYR"
        # Column 0 now reads G G G G G Y
        matched = find_matches(make_grid(rows))
        assert matched == {Coordinate(r, 0) for r in range(5)}

    def test_run_of_two_is_not_a_match(self, make_grid):
        """Two in a row is not enough."""
        rows = list(BASE_ROWS)
        rows[0] = "GGYRGB"
        assert find_matches(make_grid(rows)) == set()

    def test_run_of_five(self, make_grid):
        """A long run reports every cell."""
        rows = list(BASE_ROWS)
        rows[0] = "BBBBBG"
        assert find_matches(make_grid(rows)) == {Coordinate(0, c) for c in range(5)}

    def test_l_shape_counts_shared_cell_once(self, make_grid):
        """Crossing runs share their corner cell without duplication."""
        rows = [
            "YYYRGB",
            "YRGBYR",
            "YBGRGB",
            "GRYBYR",
            "GBYRGB",
            "YRGBYR",
        ]
        matched = find_matches(make_grid(rows))
        assert matched == {
            Coordinate(0, 0), Coordinate(0, 1), Coordinate(0, 2),
            Coordinate(1, 0), Coordinate(2, 0),
        }
        assert len(matched) == 5

    def test_empty_cells_break_runs(self, make_grid):
        """A removed cell splits a run."""
        rows = list(BASE_ROWS)
        rows[0] = "BBGBBG"
        grid = make_grid(rows)
        holed = remove_matches(grid, [Coordinate(0, 2)])
        assert find_matches(holed) == set()

    def test_grid_is_not_modified(self, make_grid):
        """Detection is read-only."""
        grid = make_grid(RUN_ROWS)
        before = [list(row) for row in grid]
        find_matches(grid)
        assert grid == before


class TestMatchedTypes:
    """Test the matched category multiset."""

    def test_one_entry_per_cell(self, make_grid):
        grid = make_grid(RUN_ROWS)
        types = get_matched_types(grid, find_matches(grid))
        assert types == ["YELLOW", "YELLOW", "YELLOW"]

    def test_disjoint_runs_contribute_independently(self, make_grid):
        """Two runs of different categories: first row-major category leads."""
        rows = list(BASE_ROWS)
        rows[0] = "RRRBGB"
        rows[5] = "YRGGGR"
        grid = make_grid(rows)
        matched = find_matches(grid)
        types = get_matched_types(grid, matched)
        assert len(types) == 6
        assert types[0] == "RED"
        assert types.count("RED") == 3
        assert types.count("GREEN") == 3

    def test_same_category_in_two_runs(self, make_grid):
        """Each run's cells are all counted."""
        rows = list(BASE_ROWS)
        rows[0] = "YYYRGB"
        rows[5] = "YRGYYY"
        grid = make_grid(rows)
        types = get_matched_types(grid, find_matches(grid))
        assert types == ["YELLOW"] * 6
        assert grid_to_types(grid)[0][:3] == ["YELLOW"] * 3
