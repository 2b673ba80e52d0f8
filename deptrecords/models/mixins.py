from sqlalchemy import Column, String

from deptrecords.utils.passwords import get_password_hash, verify_password


class PasswordMixin:
    """
    Пароль хранится только в виде хеша.
    Хеширование происходит при присваивании `password` и больше нигде,
    поэтому обновление других полей не трогает password_hash.
    """

    password_hash = Column(String, nullable=False)

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plaintext: str) -> None:
        self.password_hash = get_password_hash(plaintext)

    def check_password(self, plaintext: str) -> bool:
        return verify_password(plaintext, self.password_hash)
