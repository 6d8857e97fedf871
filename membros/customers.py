import msgspec

from membros import _app, _config, _enums, _errors, _http, _types, validation

__all__ = (
    "create",
    "delete",
    "list",
    "retrieve",
    "search",
    "update",
)


class NewCustomer(msgspec.Struct, kw_only=True):
    """Customer data sent inline when the customer is not registered yet."""
    name: str
    email: str
    document: str
    """CPF or CNPJ, with or without punctuation."""
    document_type: _enums.DocumentType | None = None
    """Inferred from the digit count when omitted."""
    mobile_phone: str | _types.Phone | None = None
    """Free-form phone string or an already structured phone."""
    home_phone: str | _types.Phone | None = None
    address: _types.Address | None = None
    metadata: _types.Metadata | None = None


class Customer(msgspec.Struct, kw_only=True):
    """A registered customer."""
    id: str
    name: str
    email: str
    document: str
    """Formatted document."""
    document_type: _enums.DocumentType
    created_at: str
    updated_at: str
    phones: _types.Phones | None = None
    address: _types.Address | None = None
    metadata: _types.Metadata | None = None


class DeletedCustomer(msgspec.Struct):
    deleted: bool
    id: str


def _phone(phone: str | _types.Phone | None) -> _types.Phone | None:
    if isinstance(phone, str):
        return validation.format_brazilian_phone(phone)
    return phone


def _phones(
    mobile_phone: str | _types.Phone | None,
    home_phone: str | _types.Phone | None,
) -> _types.Phones | None:
    if not (mobile_phone or home_phone):
        return None
    return _types.Phones(
        mobile_phone=_phone(mobile_phone or None),
        home_phone=_phone(home_phone or None),
    )


def prepare_customer(customer: NewCustomer) -> dict[str, _http.JSON]:
    """
    Validate customer data and shape it for the API.

    The document is formatted with its mask and phone strings are split into
    structured phones.

    Raises
    ------
    MembrosValidationError
        If a required field is missing or invalid, or a phone is malformed.
    """
    validation.validate_customer_data(customer.name, customer.email, customer.document)
    document_type = customer.document_type or validation.get_document_type(customer.document)
    return _http.compact({
        "name": customer.name,
        "email": customer.email,
        "document": validation.format_document(customer.document, document_type),
        "document_type": document_type,
        "phones": _phones(customer.mobile_phone, customer.home_phone),
        "address": customer.address,
        "metadata": customer.metadata,
    })


async def create(
    name: str,
    email: str,
    document: str,
    document_type: _enums.DocumentType | None = None,
    mobile_phone: str | _types.Phone | None = None,
    home_phone: str | _types.Phone | None = None,
    address: _types.Address | None = None,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Customer:
    """
    Register a customer.

    Parameters
    ----------
    name : str
        Full name, at least two characters.
    email : str
        Email address.
    document : str
        CPF or CNPJ.
    document_type : DocumentType, optional
        Inferred from the document length when omitted.
    mobile_phone, home_phone : str or Phone, optional
        Brazilian phones with area code.
    address : Address, optional
        Postal address.
    metadata : dict, optional
        Free key/value data stored with the customer.
    app : Application, optional
        Membros application configuration.

    Returns
    -------
    Customer
        The registered customer.

    Raises
    ------
    MembrosValidationError
        If the data fails local validation or is rejected by Membros.
    MembrosError
        If Membros rejects the request.
    msgspec.DecodeError
        If the response cannot be decoded.
    """
    payload = prepare_customer(NewCustomer(
        name=name,
        email=email,
        document=document,
        document_type=document_type,
        mobile_phone=mobile_phone,
        home_phone=home_phone,
        address=address,
        metadata=metadata,
    ))
    app = _app.check_initialized_app(app)
    response = await app.http.post(_http.build_path("customers"), payload, response_type=Customer)
    return response.data


async def retrieve(customer_id: str, app: _app.Application | None = None) -> Customer:
    """
    Retrieve a customer by ID.

    Raises
    ------
    MembrosNotFoundError
        If the customer does not exist.
    """
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("customers", customer_id), response_type=Customer
    )
    return response.data


async def update(
    customer_id: str,
    name: str | None = None,
    email: str | None = None,
    document: str | None = None,
    document_type: _enums.DocumentType | None = None,
    mobile_phone: str | _types.Phone | None = None,
    home_phone: str | _types.Phone | None = None,
    address: _types.Address | None = None,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Customer:
    """
    Update the given fields of a customer.

    Only arguments that are not ``None`` are sent.

    Raises
    ------
    MembrosValidationError
        If the new document, email or phone is invalid.
    """
    payload = _http.compact({
        "name": name,
        "email": email,
        "phones": _phones(mobile_phone, home_phone),
        "address": address,
        "metadata": metadata,
    })
    if email is not None and not validation.validate_email(email):
        raise _errors.MembrosValidationError(
            "Validation failed: Valid email address is required",
            "CUSTOMER_VALIDATION_ERROR",
            details={"errors": ["Valid email address is required"]},
        )
    if document:
        document_type = document_type or validation.get_document_type(document)
        if not validation.validate_document(document, document_type):
            error = "Invalid document format. Must be a valid CPF or CNPJ"
            raise _errors.MembrosValidationError(
                f"Validation failed: {error}",
                "CUSTOMER_VALIDATION_ERROR",
                details={"errors": [error]},
            )
        payload["document"] = validation.format_document(document, document_type)
        payload["document_type"] = document_type

    app = _app.check_initialized_app(app)
    response = await app.http.patch(
        _http.build_path("customers", customer_id), payload, response_type=Customer
    )
    return response.data


async def list(
    limit: int | None = None,
    offset: int | None = None,
    email: str | None = None,
    document: str | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
    app: _app.Application | None = None,
) -> _types.ListResponse[Customer]:
    """
    List customers, optionally filtered by email or document.

    The document filter is formatted before it is sent.
    """
    params = _types.ListParams(
        limit=limit,
        offset=offset,
        created_after=created_after,
        created_before=created_before,
    ).to_query()
    params["email"] = email
    params["document"] = validation.format_document(document) if document else None

    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("customers"),
        _config.RequestOptions(params=params),
        response_type=_types.ListResponse[Customer],
    )
    return response.data


async def delete(customer_id: str, app: _app.Application | None = None) -> DeletedCustomer:
    app = _app.check_initialized_app(app)
    response = await app.http.delete(
        _http.build_path("customers", customer_id), response_type=DeletedCustomer
    )
    return response.data


async def search(
    name: str | None = None,
    email: str | None = None,
    document: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
    app: _app.Application | None = None,
) -> _types.ListResponse[Customer]:
    """Search customers by name, email or document."""
    params = {
        "name": name,
        "email": email,
        "document": validation.format_document(document) if document else None,
        "limit": limit,
        "offset": offset,
    }
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("customers", "search"),
        _config.RequestOptions(params=params),
        response_type=_types.ListResponse[Customer],
    )
    return response.data