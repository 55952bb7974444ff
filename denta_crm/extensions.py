from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Shared database, migration and auth instances
db = SQLAlchemy()
migrate = Migrate()
bcrypt = Bcrypt()
jwt = JWTManager()
# Keyed by the socket address; ProxyFix in create_app rewrites it behind trusted proxies
limiter = Limiter(key_func=get_remote_address)
