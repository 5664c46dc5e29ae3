"""Pygame window showing the gallery's images tiled side by side, with a status line."""
import logging
import threading

import pygame

from manifest_viewer.layout import fit_into, grid_cells

logger = logging.getLogger(__name__)

STATUS_BAR_HEIGHT = 28
TARGET_FPS = 15
BACKGROUND = (0, 0, 0)
TEXT_COLOR = (255, 255, 255)
STATUS_BACKGROUND = (30, 30, 30)


def pil_to_surface(image):
    """Convert an RGB Pillow image to a pygame surface"""
    return pygame.image.frombuffer(image.tobytes(), image.size, 'RGB')


class PygameViewer:
    def __init__(self, gallery, width=1280, height=720, title="Manifest Viewer"):
        self.gallery = gallery
        self.size = (width, height)
        self.title = title
        self._status = "Waiting for a manifest URL"
        self._status_lock = threading.Lock()
        self._rendered_version = None
        self._rendered_size = None
        self._placed = []

    def set_status(self, text):
        """Safe to call from any thread; shown on the next frame."""
        with self._status_lock:
            self._status = text

    def get_status(self):
        with self._status_lock:
            return self._status

    def run(self):
        """Runs the render loop on the calling thread until the window is closed or ESC is pressed."""
        pygame.init()
        try:
            screen = pygame.display.set_mode(self.size, pygame.RESIZABLE)
            pygame.display.set_caption(self.title)
            font = pygame.font.SysFont(None, 24)
            clock = pygame.time.Clock()
            logger.info(f"Viewer window opened at {self.size[0]}x{self.size[1]} using {pygame.display.get_driver()} driver")
            running = True
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.type == pygame.VIDEORESIZE:
                        screen = pygame.display.set_mode(event.size, pygame.RESIZABLE)
                self._draw(screen, font)
                self._flip()
                clock.tick(TARGET_FPS)
            logger.info("Viewer window closed")
        finally:
            pygame.quit()

    def _rebuild(self, entries, area_width, area_height):
        self._placed = []
        cells = grid_cells(len(entries), area_width, area_height)
        for (locator, image), cell in zip(entries, cells):
            try:
                surface = pil_to_surface(image)
                x, y, w, h = fit_into(image.width, image.height, cell)
                if w <= 0 or h <= 0:
                    continue
                self._placed.append((pygame.transform.smoothscale(surface, (w, h)), (x, y)))
            except (ValueError, pygame.error) as e:
                logger.warning(f"Could not render image {locator}: {e}")

    def _draw(self, screen, font):
        screen_width, screen_height = screen.get_size()
        area_height = max(1, screen_height - STATUS_BAR_HEIGHT)
        version, entries = self.gallery.snapshot()
        if version != self._rendered_version or (screen_width, area_height) != self._rendered_size:
            self._rebuild(entries, screen_width, area_height)
            self._rendered_version = version
            self._rendered_size = (screen_width, area_height)

        screen.fill(BACKGROUND)
        if self._placed:
            for surface, position in self._placed:
                screen.blit(surface, position)
        else:
            text = font.render("No images loaded", True, TEXT_COLOR)
            screen.blit(text, text.get_rect(center=(screen_width / 2, area_height / 2)))

        bar = pygame.Rect(0, area_height, screen_width, STATUS_BAR_HEIGHT)
        pygame.draw.rect(screen, STATUS_BACKGROUND, bar)
        status = font.render(self.get_status(), True, TEXT_COLOR)
        screen.blit(status, status.get_rect(midleft=(8, bar.centery)))

    def _flip(self):
        try:
            pygame.display.flip()
        except pygame.error as e:
            logger.warning(f"Display flip failed: {e}")
