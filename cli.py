"""
CLI интерфейс для обслуживания реестра сертификатов
"""
import argparse
import getpass
import logging
import sys
from typing import List, Optional

from config.settings import Settings, get_settings, create_env_example, validate_settings
from core.exceptions import CertificateError, ValidationError
from core.models import Certificate
from core.service import Services, build_services

STATUS_LABELS = {
    "active": "✓ ДЕЙСТВИТЕЛЕН",
    "expired": "✗ ИСТЕК",
    "inactive": "✗ УДАЛЕН",
}


class CertificateCLI:
    """CLI интерфейс для работы с сертификатами"""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._services: Optional[Services] = None
        self.logger = logging.getLogger(__name__)

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def services(self) -> Services:
        """Сервисы создаются только для команд, которым нужна БД"""
        if self._services is None:
            self.setup_logging()
            self._services = build_services(self.settings)
        return self._services

    def setup_logging(self):
        """Настройка логирования"""
        logging.basicConfig(
            level=getattr(logging, self.settings.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(self.settings.log_file, encoding='utf-8'),
                logging.StreamHandler()
            ]
        )

    def init_db(self, args) -> int:
        """Создание таблиц"""
        self.services.db_manager.create_tables()
        print("✓ Таблицы базы данных созданы")
        return 0

    def create_admin(self, args) -> int:
        """Создание администратора"""
        password = args.password
        if not password:
            password = getpass.getpass("Пароль: ")
            if password != getpass.getpass("Повторите пароль: "):
                print("✗ Пароли не совпадают")
                return 1

        try:
            self.services.db_manager.create_tables()
            user = self.services.auth_service.create_admin(
                email=args.email,
                password=password,
                username=args.username,
                role=args.role
            )
        except ValidationError as e:
            print(f"✗ Ошибка валидации: {e}")
            return 1
        except CertificateError as e:
            print(f"✗ Ошибка: {e}")
            self.logger.error(f"Ошибка создания администратора: {e}")
            return 1

        print("✓ Администратор создан:")
        print(f"  ID: {user.id}")
        print(f"  Email: {user.email}")
        if user.username:
            print(f"  Username: {user.username}")
        print(f"  Роль: {user.role}")
        return 0

    def list_certificates(self, args) -> int:
        """Список сертификатов"""
        certificates = self.services.certificate_service.list_certificates(include_inactive=args.all)

        if not certificates:
            print("  Сертификаты не найдены")
            return 0

        print(f"Сертификатов: {len(certificates)}")
        for certificate in certificates:
            print(self.format_certificate_line(certificate))
        return 0

    def search_certificates(self, args) -> int:
        """Поиск действующих сертификатов по DNI"""
        try:
            certificates = self.services.certificate_service.search_by_dni(args.dni)
        except CertificateError as e:
            print(f"✗ {e}")
            return 1

        for certificate in certificates:
            print(self.format_certificate_info(certificate))
            print()
        return 0

    def check_config(self, args) -> int:
        """Проверка настроек"""
        return 0 if validate_settings(self._settings) else 1

    def env_example(self, args) -> int:
        create_env_example(args.output)
        return 0

    @staticmethod
    def format_certificate_line(certificate: Certificate) -> str:
        status = "✓" if certificate.status == "active" else "✗"
        return (
            f"  {status} {certificate.id}  {certificate.dni}  {certificate.course}"
            f"  до {certificate.expiry_date.strftime('%d.%m.%Y')}"
        )

    @staticmethod
    def format_certificate_info(certificate: Certificate) -> str:
        """Подробная информация о сертификате"""
        info = [
            f"  ID: {certificate.id}",
            f"  DNI: {certificate.dni}",
            f"  ФИО: {certificate.full_name}",
            f"  Курс: {certificate.course}",
            f"  Компания: {certificate.company}",
            f"  Период: {certificate.issue_date.strftime('%d.%m.%Y')}-{certificate.expiry_date.strftime('%d.%m.%Y')}",
            f"  PDF: {certificate.pdf_url or '-'}",
            f"  Статус: {STATUS_LABELS[certificate.status]}",
        ]
        return "\n".join(info)

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Обслуживание реестра сертификатов",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Примеры использования:
  %(prog)s init-db
  %(prog)s create-admin --email admin@example.com
  %(prog)s list --all
  %(prog)s search 12345678
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Доступные команды')

        subparsers.add_parser('init-db', help='Создание таблиц базы данных')

        admin_parser = subparsers.add_parser('create-admin', help='Создание администратора')
        admin_parser.add_argument('--email', required=True, help='Email администратора')
        admin_parser.add_argument('--username', help='Имя пользователя для входа')
        admin_parser.add_argument('--password', help='Пароль (если не указан, будет запрошен)')
        admin_parser.add_argument('--role', default='admin', help='Роль')

        list_parser = subparsers.add_parser('list', help='Список сертификатов')
        list_parser.add_argument('--all', action='store_true', help='Включая удаленные')

        search_parser = subparsers.add_parser('search', help='Поиск действующих сертификатов по DNI')
        search_parser.add_argument('dni', help='Номер документа владельца')

        subparsers.add_parser('check-config', help='Проверка настроек')

        env_parser = subparsers.add_parser('env-example', help='Создание примера .env')
        env_parser.add_argument('--output', default='.env.example', help='Путь к файлу')

        return parser

    def main(self, argv: Optional[List[str]] = None) -> int:
        """Главная функция CLI"""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 0

        commands = {
            'init-db': self.init_db,
            'create-admin': self.create_admin,
            'list': self.list_certificates,
            'search': self.search_certificates,
            'check-config': self.check_config,
            'env-example': self.env_example,
        }
        return commands[args.command](args)


def main():
    """Точка входа консольной команды"""
    cli = CertificateCLI()
    sys.exit(cli.main())


if __name__ == '__main__':
    main()
