"""Исключения бенчмарка"""


class IOBenchError(Exception):
    """Базовая ошибка iobench"""


class ConfigurationError(IOBenchError, ValueError):
    """Неверные параметры запуска, обнаруживается до любого I/O"""


class SetupError(IOBenchError, OSError):
    """Целевая директория недоступна, фазу нельзя начать"""
