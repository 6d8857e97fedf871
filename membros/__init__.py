"""
Membros API Wrapper
===================

Asynchronous Python client for the Membros payments API.

Covers customers, PIX, boleto and credit card orders, refunds and merchant
users, plus CPF/CNPJ and phone validation helpers.
"""
from membros._app import *
from membros._config import *
from membros._enums import *
from membros._errors import *
from membros._events import *
from membros._http import *
from membros._types import *
from membros._config import __version__
