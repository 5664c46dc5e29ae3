import math


def grid_cells(count, area_width, area_height, gap=4):
    """Splits the area into a near-square grid; returns one (x, y, w, h) cell per image, row-major."""
    if count <= 0 or area_width <= 0 or area_height <= 0:
        return []
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    cell_width = max(1, (area_width - gap * (cols - 1)) // cols)
    cell_height = max(1, (area_height - gap * (rows - 1)) // rows)
    cells = []
    for index in range(count):
        row, col = divmod(index, cols)
        cells.append((col * (cell_width + gap), row * (cell_height + gap), cell_width, cell_height))
    return cells


def fit_into(img_width, img_height, cell):
    """Largest rect with the image's aspect ratio centered in cell."""
    x, y, cell_width, cell_height = cell
    if img_width <= 0 or img_height <= 0:
        return (x, y, 0, 0)
    scale_ratio = min(cell_width / img_width, cell_height / img_height)
    new_width = max(1, int(img_width * scale_ratio))
    new_height = max(1, int(img_height * scale_ratio))
    return (x + (cell_width - new_width) // 2, y + (cell_height - new_height) // 2, new_width, new_height)
