import pytest

from manifest_viewer.layout import fit_into, grid_cells


@pytest.mark.parametrize("count, cols, rows", [(1, 1, 1), (2, 2, 1), (3, 2, 2), (4, 2, 2), (5, 3, 2), (9, 3, 3)])
def test_grid_shape(count, cols, rows):
    cells = grid_cells(count, 1200, 600, gap=0)
    assert len(cells) == count
    assert len({x for x, _, _, _ in cells}) == cols
    assert len({y for _, y, _, _ in cells}) == rows


def test_grid_is_row_major_and_inside_area():
    cells = grid_cells(3, 1000, 500, gap=4)
    assert cells[0][:2] == (0, 0)
    assert cells[1][0] > cells[0][0] and cells[1][1] == 0
    assert cells[2][:2] == (0, cells[0][3] + 4)
    for x, y, w, h in cells:
        assert x + w <= 1000 and y + h <= 500


def test_no_images_no_cells():
    assert grid_cells(0, 1000, 500) == []


def test_fit_into_centres_and_keeps_aspect():
    assert fit_into(200, 100, (0, 0, 400, 400)) == (0, 100, 400, 200)
    assert fit_into(100, 200, (10, 20, 400, 400)) == (110, 20, 200, 400)


def test_fit_into_degenerate_image():
    assert fit_into(0, 10, (5, 5, 100, 100)) == (5, 5, 0, 0)
