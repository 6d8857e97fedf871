import pytest

from membros import MembrosValidationError, UserStatus, WithdrawStatus
from membros import users

USER = {
    "id": "usr_1",
    "email": "joao@example.com",
    "name": "Joao",
    "status": "active",
    "creatorId": "crt_1",
    "createdAt": "2024-01-15T12:00:00Z",
    "updatedAt": "2024-01-15T12:00:00Z",
}


class TestRetrieve:
    async def test_retrieve_maps_camel_case_fields(self, api, app) -> None:
        api.reply(200, USER)

        user = await users.retrieve("usr_1")

        assert api.requests[0].path == "/v2/users/usr_1"
        assert user.creator_id == "crt_1"
        assert user.created_at == "2024-01-15T12:00:00Z"
        assert user.status is UserStatus.ACTIVE

    async def test_retrieve_by_email_encodes_path(self, api, app) -> None:
        api.reply(200, USER)

        await users.retrieve_by_email("joao+test@example.com")

        assert api.requests[0].path == "/v2/users/email/joao+test@example.com"

    async def test_list_by_creator(self, api, app) -> None:
        api.reply(200, [USER, {**USER, "id": "usr_2", "name": None}])

        result = await users.list_by_creator("crt_1")

        assert api.requests[0].path == "/v2/users/creator/crt_1"
        assert [user.id for user in result] == ["usr_1", "usr_2"]
        assert result[1].name is None


class TestList:
    async def test_sends_camel_case_filters(self, api, app) -> None:
        api.reply(200, {"data": [USER], "has_more": True})

        page = await users.list(limit=5, creator_id="crt_1", status=UserStatus.ACTIVE)

        assert api.requests[0].path == "/v2/users"
        assert api.requests[0].query == {"limit": "5", "creatorId": "crt_1", "status": "active"}
        assert page.has_more is True


class TestBalanceAndWithdraw:
    async def test_get_balance(self, api, app) -> None:
        api.reply(
            200,
            {
                "availableAmount": 150000,
                "pendingAmount": 2500,
                "currency": "BRL",
                "lastUpdated": "2024-01-15T12:00:00Z",
            },
        )

        balance = await users.get_balance()

        assert api.requests[0].path == "/v2/users/balance"
        assert balance.available_amount == 150000
        assert balance.pending_amount == 2500
        assert balance.currency == "BRL"

    async def test_request_withdraw(self, api, app) -> None:
        api.reply(
            201,
            {
                "id": "wd_1",
                "amount": 50000,
                "status": "pending",
                "description": "Saque semanal",
                "requestedAt": "2024-01-15T12:00:00Z",
            },
        )

        withdraw = await users.request_withdraw(50000, description="Saque semanal")

        request = api.requests[0]
        assert request.method == "POST"
        assert request.path == "/v2/users/withdraw"
        assert request.json() == {"amount": 50000, "description": "Saque semanal"}
        assert withdraw.status is WithdrawStatus.PENDING
        assert withdraw.processed_at is None

    @pytest.mark.parametrize("amount", [0, -1, 99.5, True])
    async def test_rejects_invalid_amount(self, api, app, amount) -> None:
        with pytest.raises(MembrosValidationError) as exc_info:
            await users.request_withdraw(amount)

        assert exc_info.value.code == "WITHDRAW_VALIDATION_ERROR"
        assert api.requests == []
