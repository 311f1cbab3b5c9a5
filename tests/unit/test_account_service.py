"""AccountService（アカウント削除）のテスト"""

import pytest
from ewarrants.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from ewarrants.services.account import AccountService


@pytest.fixture
def service(mock_user_repo, store, mock_authenticator):
    return AccountService(mock_user_repo, store, mock_authenticator)


def test_delete_cascades_then_records_are_gone(
    service, store, mock_user_repo, mock_authenticator, sample_user, sample_draft
):
    created = store.create("user-a", sample_draft)
    store.create("user-a", sample_draft)
    mock_user_repo.get_user.return_value = sample_user
    mock_authenticator.verify_password.return_value = True

    deleted = service.delete_account("user-a", "s3cret")

    assert deleted == 2
    with pytest.raises(NotFoundError):
        store.get("user-a", created.id)
    mock_user_repo.delete_user.assert_called_once_with("user-a")
    mock_authenticator.delete_account.assert_called_once_with("user-a")
    mock_authenticator.verify_password.assert_called_once_with("alice@example.com", "s3cret")


def test_wrong_password_deletes_nothing(
    service, store, mock_user_repo, mock_authenticator, sample_user, sample_draft
):
    created = store.create("user-a", sample_draft)
    mock_user_repo.get_user.return_value = sample_user
    mock_authenticator.verify_password.return_value = False

    with pytest.raises(UnauthorizedError):
        service.delete_account("user-a", "wrong")

    assert store.get("user-a", created.id) == created
    mock_user_repo.delete_user.assert_not_called()
    mock_authenticator.delete_account.assert_not_called()


def test_empty_password_rejected(service, mock_user_repo):
    with pytest.raises(ValidationError):
        service.delete_account("user-a", "")
    mock_user_repo.get_user.assert_not_called()


def test_unknown_user_is_not_found(service, mock_user_repo):
    mock_user_repo.get_user.return_value = None
    with pytest.raises(NotFoundError):
        service.delete_account("ghost", "pw")


def test_other_users_records_survive(
    service, store, mock_user_repo, mock_authenticator, sample_user, sample_draft
):
    store.create("user-a", sample_draft)
    other = store.create("user-b", sample_draft)
    mock_user_repo.get_user.return_value = sample_user
    mock_authenticator.verify_password.return_value = True

    service.delete_account("user-a", "pw")

    assert store.get("user-b", other.id) == other
