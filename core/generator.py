"""
Генератор имен PDF файлов сертификатов.
"""

import time
from typing import Callable, Optional
from .validators import FilenameValidator


class PdfFilenameGenerator:
    """Генератор имен файлов вида {dni}-{курс}-{timestamp}.pdf."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        # Источник времени в секундах, подменяется в тестах
        self.clock = clock or time.time
        self.sanitizer = FilenameValidator()

    def generate(self, dni: str, course: str) -> str:
        """
        Генерирует имя файла для PDF сертификата.

        Формат: {dni}-{sanitizedCourse}-{currentTimestamp}.pdf
        Все символы вне [A-Za-z0-9] заменяются на '_', timestamp в миллисекундах.

        Args:
            dni: Номер документа владельца
            course: Название курса

        Returns:
            str: Имя файла
        """
        timestamp = self._current_timestamp()
        safe_dni = self.sanitizer.sanitize(dni.strip())
        safe_course = self.sanitizer.sanitize(course.strip())
        return f"{safe_dni}-{safe_course}-{timestamp}.pdf"

    def _current_timestamp(self) -> int:
        """Текущее время в миллисекундах с начала эпохи."""
        return int(self.clock() * 1000)

