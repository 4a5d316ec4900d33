class LaundryError(Exception):
    """Базовая ошибка приложения"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LaundryError):
    """Не хватает обязательного поля или значение некорректно"""

    status_code = 400


class NotFoundError(LaundryError):
    """Запрошенная запись отсутствует"""

    status_code = 404


class StoreError(LaundryError):
    """Сбой хранилища"""

    status_code = 500
