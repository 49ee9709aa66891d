import pytest

from vframes.exceptions import ProviderException
from vframes.providers.custom_providers import LocalStorageProvider


@pytest.fixture
def local_storage(tmp_path):
    return LocalStorageProvider({"base_path": str(tmp_path / "store")})


async def test_save_bytes_writes_under_bucket(local_storage, tmp_path):
    uri = await local_storage.save_bytes("abc/segment_0001/15.jpg", b"jpeg", "image/jpeg", folder_name="frames")

    stored = tmp_path / "store" / "frames" / "abc" / "segment_0001" / "15.jpg"
    assert stored.read_bytes() == b"jpeg"
    assert uri == stored.resolve().as_uri()


async def test_overwrites_existing_object(local_storage, tmp_path):
    await local_storage.save_bytes("abc/seg/0.jpg", b"first", "image/jpeg", folder_name="frames")
    await local_storage.save_bytes("abc/seg/0.jpg", b"second", "image/jpeg", folder_name="frames")

    assert (tmp_path / "store" / "frames" / "abc" / "seg" / "0.jpg").read_bytes() == b"second"


async def test_write_errors_raise_provider_exception(local_storage, tmp_path):
    # a plain file where the video directory should be
    (tmp_path / "store" / "frames").mkdir()
    (tmp_path / "store" / "frames" / "abc").write_text("not a directory")

    with pytest.raises(ProviderException):
        await local_storage.save_bytes("abc/seg/0.jpg", b"jpeg", "image/jpeg", folder_name="frames")
