import msgspec

from membros import _app, _config, _enums, _errors, _http, _types

__all__ = (
    "get_balance",
    "list",
    "list_by_creator",
    "request_withdraw",
    "retrieve",
    "retrieve_by_email",
)


class User(msgspec.Struct, kw_only=True):
    """A merchant platform user."""
    id: str
    email: str
    status: _enums.UserStatus
    created_at: str = msgspec.field(name="createdAt")
    updated_at: str = msgspec.field(name="updatedAt")
    name: str | None = None
    creator_id: str | None = msgspec.field(default=None, name="creatorId")


class MerchantBalance(msgspec.Struct):
    available_amount: int = msgspec.field(name="availableAmount")
    """Amount available for withdrawal, in cents."""
    pending_amount: int = msgspec.field(name="pendingAmount")
    """Amount not yet settled, in cents."""
    currency: str
    last_updated: str = msgspec.field(name="lastUpdated")


class Withdraw(msgspec.Struct, kw_only=True):
    id: str
    amount: int
    status: _enums.WithdrawStatus
    requested_at: str = msgspec.field(name="requestedAt")
    description: str | None = None
    processed_at: str | None = msgspec.field(default=None, name="processedAt")


UserList = list[User]


async def retrieve(user_id: str, app: _app.Application | None = None) -> User:
    app = _app.check_initialized_app(app)
    response = await app.http.get(_http.build_path("users", user_id), response_type=User)
    return response.data


async def retrieve_by_email(email: str, app: _app.Application | None = None) -> User:
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("users", "email", email), response_type=User
    )
    return response.data


async def list_by_creator(creator_id: str, app: _app.Application | None = None) -> UserList:
    """Users registered by the given creator."""
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("users", "creator", creator_id), response_type=UserList
    )
    return response.data


async def get_balance(app: _app.Application | None = None) -> MerchantBalance:
    """
    Retrieve the merchant balance.

    Returns
    -------
    MerchantBalance
        Available and pending amounts in cents.
    """
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("users", "balance"), response_type=MerchantBalance
    )
    return response.data


async def request_withdraw(
    amount: int,
    description: str | None = None,
    app: _app.Application | None = None,
) -> Withdraw:
    """
    Request a withdrawal of the available balance.

    Parameters
    ----------
    amount : int
        Amount in cents.
    description : str, optional
        Free text shown on the withdrawal.
    app : Application, optional
        Membros application configuration.

    Returns
    -------
    Withdraw
        The withdrawal request, usually ``pending``.

    Raises
    ------
    MembrosValidationError
        If ``amount`` is not a positive integer, or Membros rejects it.
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise _errors.MembrosValidationError(
            "Withdraw amount must be a positive integer (in cents)",
            "WITHDRAW_VALIDATION_ERROR",
        )
    app = _app.check_initialized_app(app)
    response = await app.http.post(
        _http.build_path("users", "withdraw"),
        _http.compact({"amount": amount, "description": description}),
        response_type=Withdraw,
    )
    return response.data


async def list(
    limit: int | None = None,
    offset: int | None = None,
    creator_id: str | None = None,
    status: _enums.UserStatus | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
    app: _app.Application | None = None,
) -> _types.ListResponse[User]:
    params = _types.ListParams(
        limit=limit,
        offset=offset,
        created_after=created_after,
        created_before=created_before,
    ).to_query()
    params["creatorId"] = creator_id
    params["status"] = status

    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("users"),
        _config.RequestOptions(params=params),
        response_type=_types.ListResponse[User],
    )
    return response.data
