from intakeform.blobs import LocalBlobStore, blob_name


def test_blob_name_replaces_whitespace():
    assert blob_name("front  bumper.jpg", millis=1700000000000) == "1700000000000-front-bumper.jpg"


def test_blob_name_strips_directories():
    assert blob_name("../../etc/passwd", millis=1) == "1-passwd"
    assert blob_name("C:\\photos\\rear view.png", millis=2) == "2-rear-view.png"
    assert blob_name("", millis=3) == "3-upload"


def test_save_and_delete(tmp_path):
    store = LocalBlobStore(tmp_path)
    path = store.save("dash cam.jpg", b"jpeg-bytes")
    assert path.startswith("uploads/")
    assert path.endswith("-dash-cam.jpg")
    assert store.exists(path)
    assert store.resolve(path).read_bytes() == b"jpeg-bytes"

    assert store.delete(path) is True
    assert not store.exists(path)


def test_delete_missing_blob_is_tolerated(tmp_path):
    store = LocalBlobStore(tmp_path)
    assert store.delete("uploads/123-missing.jpg") is False
    assert store.delete_many(["uploads/1-a.jpg", "uploads/2-b.jpg"]) == 0


def test_resolve_refuses_paths_outside_root(tmp_path):
    store = LocalBlobStore(tmp_path / "uploads")
    assert store.resolve("uploads/../secret.txt") is None
    assert store.delete("../secret.txt") is False


def test_same_name_in_one_millisecond_is_not_overwritten(tmp_path, monkeypatch):
    monkeypatch.setattr("intakeform.blobs.time.time", lambda: 1700000000.0)
    store = LocalBlobStore(tmp_path)
    first = store.save("image.jpg", b"first-photo")
    second = store.save("image.jpg", b"second-photo")
    third = store.save("image.jpg", b"third-photo")

    assert first == "uploads/1700000000000-image.jpg"
    assert second == "uploads/1700000000000-image-1.jpg"
    assert third == "uploads/1700000000000-image-2.jpg"
    assert store.resolve(first).read_bytes() == b"first-photo"
    assert store.resolve(second).read_bytes() == b"second-photo"
    assert store.delete_many([first, second, third]) == 3
