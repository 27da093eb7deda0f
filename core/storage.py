"""
Файловое хранилище PDF сертификатов.
"""

import logging
import os
from pathlib import Path
from typing import Union

from .exceptions import StorageError, PdfFileNotFoundError, InvalidFilenameError
from .validators import FilenameValidator

logger = logging.getLogger(__name__)


class FileStorage:
    """Плоский каталог PDF файлов, адресуемых по ссылке на скачивание."""

    def __init__(self, base_path: Union[str, Path] = "certificates",
                 url_prefix: str = "/api/certificates/download"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")
        self.filename_validator = FilenameValidator()

    def reference_for(self, filename: str) -> str:
        """Ссылка на скачивание для имени файла."""
        return f"{self.url_prefix}/{filename}"

    def filename_from_reference(self, reference: str) -> str:
        """
        Извлекает и проверяет имя файла из ссылки.

        Принимает как полную ссылку, так и голое имя файла.

        Raises:
            InvalidFilenameError: Имя содержит '..', разделители пути или не .pdf
        """
        if not reference:
            raise InvalidFilenameError("Недопустимое имя файла")

        filename = reference
        prefix = f"{self.url_prefix}/"
        if reference.startswith(prefix):
            filename = reference[len(prefix):]

        return self.filename_validator.ensure_valid(filename)

    def _path_for(self, reference: str) -> Path:
        """Путь к файлу внутри каталога хранилища."""
        filename = self.filename_from_reference(reference)
        file_path = self.base_path / filename

        if file_path.resolve().parent != self.base_path.resolve():
            raise InvalidFilenameError("Недопустимое имя файла")

        return file_path

    def save_pdf(self, filename: str, content: bytes) -> str:
        """
        Сохранение PDF в хранилище.

        Args:
            filename: Сгенерированное имя файла
            content: Содержимое PDF

        Returns:
            str: Ссылка на скачивание

        Raises:
            StorageError: Файл уже существует или запись не удалась
        """
        file_path = self._path_for(filename)

        try:
            with open(file_path, 'xb') as f:
                f.write(content)

            # Установка прав доступа
            os.chmod(file_path, 0o644)
        except FileExistsError as e:
            raise StorageError(f"Файл {filename} уже существует") from e
        except OSError as e:
            raise StorageError(f"Ошибка сохранения файла: {e}") from e

        logger.info(f"PDF сохранен: {file_path}")
        return self.reference_for(filename)

    def resolve_pdf(self, reference: str) -> Path:
        """
        Путь к существующему PDF.

        Raises:
            InvalidFilenameError: Недопустимое имя
            PdfFileNotFoundError: Файла нет в хранилище
        """
        file_path = self._path_for(reference)

        if not file_path.is_file():
            raise PdfFileNotFoundError("Файл не найден")

        return file_path

    def load_pdf(self, reference: str) -> bytes:
        """Загрузка содержимого PDF."""
        file_path = self.resolve_pdf(reference)

        try:
            return file_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Ошибка чтения файла: {e}") from e

    def delete_pdf(self, reference: str) -> bool:
        """
        Удаление PDF из хранилища.

        Returns:
            bool: True если файл был удален, False если его не было

        Raises:
            StorageError: Ошибка файловой системы
        """
        file_path = self._path_for(reference)

        try:
            file_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Ошибка удаления файла: {e}") from e

        logger.info(f"PDF удален: {file_path}")
        return True

    def get_storage_stats(self) -> dict:
        """Статистика хранилища для проверки здоровья."""
        files = [p for p in self.base_path.glob("*.pdf") if p.is_file()]
        return {
            "path": str(self.base_path),
            "exists": self.base_path.is_dir(),
            "writable": os.access(self.base_path, os.W_OK),
            "files": len(files),
            "total_size": sum(p.stat().st_size for p in files)
        }
