"""Bearer token verification and note password hashing."""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from . import config

# Cost factor is fixed per deployment; existing hashes keep their own rounds.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.PASSWORD_HASH_ROUNDS,
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=config.AUTH_TOKEN_URL)


# PUBLIC_INTERFACE
def get_password_hash(password):
    return pwd_context.hash(password)

# PUBLIC_INTERFACE
def verify_password(plain_password, hashed_password):
    """Constant-time bcrypt check. A missing or malformed hash never matches."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False

# PUBLIC_INTERFACE
def decode_access_token(token: str) -> dict:
    """Tokens without an `aud` claim are accepted; one that carries a different audience is not."""
    if config.JWT_AUDIENCE:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM], audience=config.JWT_AUDIENCE)
    return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM], options={"verify_aud": False})

# PUBLIC_INTERFACE
def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Decodes the provider-issued JWT and returns the user id in its `sub` claim."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception
    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception
    return str(user_id)
