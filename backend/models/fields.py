from typing import Annotated

from pydantic import AfterValidator, BeforeValidator, EmailStr, StringConstraints

from config import MIN_PASSWORD_LENGTH

# bcrypt 只处理前 72 字节，更长的密码直接报错
MAX_PASSWORD_BYTES = 72


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"密码不能超过{MAX_PASSWORD_BYTES}字节")
    return value


Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(str.lower)]
Password = Annotated[
    str,
    StringConstraints(min_length=MIN_PASSWORD_LENGTH),
    AfterValidator(_check_password_bytes),
]
# 与 trim + required 一致：去掉首尾空白后不能为空
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Text = Annotated[str, StringConstraints(strip_whitespace=True)]
