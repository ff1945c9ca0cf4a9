from jread.core.permissions import UserRole


async def test_reader_cannot_create_novel(client, make_user):
    _, headers = await make_user(role=UserRole.USER)
    response = await client.post("/novels", json={"title": "Nope"}, headers=headers)
    assert response.status_code == 403


async def test_create_novel_defaults(client, make_user, make_novel):
    author, headers = await make_user(role=UserRole.AUTHOR, username="quill")
    novel = await make_novel(headers, title="")

    assert novel["title"] == "Untitled"
    assert novel["status"] == "DRAFT"
    assert novel["genre"] == "Fantasy"
    assert novel["language"] == "English"
    assert novel["author_name"] == "quill"
    assert novel["cover_image"].startswith("https://picsum.photos/seed/newNovel")
    assert novel["rating"] == 0
    assert novel["likes"] == 0


async def test_drafts_are_hidden_from_readers(client, make_user, make_novel):
    _, author_headers = await make_user(role=UserRole.AUTHOR)
    _, reader_headers = await make_user(role=UserRole.USER)
    _, admin_headers = await make_user(role=UserRole.ADMIN)
    draft = await make_novel(author_headers, title="Secret")

    listing = (await client.get("/novels")).json()
    assert draft["id"] not in [n["id"] for n in listing]

    assert (await client.get(f"/novels/{draft['id']}")).status_code == 404
    assert (await client.get(f"/novels/{draft['id']}", headers=reader_headers)).status_code == 404
    assert (await client.get(f"/novels/{draft['id']}", headers=author_headers)).status_code == 200
    assert (await client.get(f"/novels/{draft['id']}", headers=admin_headers)).status_code == 200

    response = await client.patch(f"/novels/{draft['id']}/status", json={"status": "PUBLISHED"},
                                  headers=author_headers)
    assert response.status_code == 200

    listing = (await client.get("/novels")).json()
    assert draft["id"] in [n["id"] for n in listing]


async def test_author_works_page_shows_drafts_only_to_owner(client, make_user, make_novel):
    author, author_headers = await make_user(role=UserRole.AUTHOR)
    await make_novel(author_headers, title="Draft")
    await make_novel(author_headers, title="Out", status="PUBLISHED")

    public = (await client.get(f"/users/{author.id}/novels")).json()
    assert [n["title"] for n in public] == ["Out"]

    own = (await client.get(f"/users/{author.id}/novels", headers=author_headers)).json()
    assert sorted(n["title"] for n in own) == ["Draft", "Out"]


async def test_only_the_author_can_edit(client, make_user, make_novel):
    _, author_headers = await make_user(role=UserRole.AUTHOR)
    _, other_headers = await make_user(role=UserRole.AUTHOR)
    novel = await make_novel(author_headers, status="PUBLISHED")

    response = await client.patch(f"/novels/{novel['id']}", json={"title": "Hijacked"}, headers=other_headers)
    assert response.status_code == 403

    response = await client.patch(f"/novels/{novel['id']}", json={"title": "Renamed", "tags": ["magic"]},
                                  headers=author_headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["tags"] == ["magic"]

    assert (await client.patch("/novels/9999", json={"title": "x"}, headers=author_headers)).status_code == 404


async def test_chapters_are_numbered_and_sorted(client, make_user, make_novel, make_chapter):
    _, headers = await make_user(role=UserRole.AUTHOR)
    novel = await make_novel(headers, status="PUBLISHED")

    first = await make_chapter(headers, novel["id"], title="One")
    second = await make_chapter(headers, novel["id"], title="Two")
    assert first["chapter_number"] == 1
    assert second["chapter_number"] == 2

    await make_chapter(headers, novel["id"], title="Zero", chapter_number=5)
    third = await make_chapter(headers, novel["id"], title="After")
    assert third["chapter_number"] == 6

    detail = (await client.get(f"/novels/{novel['id']}")).json()
    numbers = [c["chapter_number"] for c in detail["chapters"]]
    assert numbers == sorted(numbers)


async def test_unpublished_chapters_are_hidden(client, make_user, make_novel, make_chapter):
    _, headers = await make_user(role=UserRole.AUTHOR)
    novel = await make_novel(headers, status="PUBLISHED")
    published = await make_chapter(headers, novel["id"], title="Out")
    draft = await make_chapter(headers, novel["id"], title="Soon", is_published=False)

    detail = (await client.get(f"/novels/{novel['id']}")).json()
    assert [c["id"] for c in detail["chapters"]] == [published["id"]]

    assert (await client.get(f"/chapters/{draft['id']}")).status_code == 404
    assert (await client.get(f"/chapters/{draft['id']}", headers=headers)).status_code == 200

    response = await client.patch(f"/chapters/{draft['id']}", json={"is_published": True}, headers=headers)
    assert response.status_code == 200
    assert (await client.get(f"/chapters/{draft['id']}")).status_code == 200


async def test_chapter_update_keeps_unset_fields(client, make_user, make_novel, make_chapter):
    _, headers = await make_user(role=UserRole.AUTHOR)
    novel = await make_novel(headers)
    chapter = await make_chapter(headers, novel["id"], title="Keep", content="old")

    response = await client.patch(f"/chapters/{chapter['id']}", json={"content": "<strong>new</strong>"},
                                  headers=headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Keep"
    assert response.json()["content"] == "<strong>new</strong>"


async def test_delete_novel_removes_chapters(client, make_user, make_novel, make_chapter):
    _, headers = await make_user(role=UserRole.AUTHOR)
    _, other_headers = await make_user(role=UserRole.AUTHOR)
    novel = await make_novel(headers, status="PUBLISHED")
    chapter = await make_chapter(headers, novel["id"])

    assert (await client.delete(f"/novels/{novel['id']}", headers=other_headers)).status_code == 403
    assert (await client.delete(f"/novels/{novel['id']}", headers=headers)).status_code == 200

    assert (await client.get(f"/novels/{novel['id']}")).status_code == 404
    assert (await client.get(f"/chapters/{chapter['id']}", headers=headers)).status_code == 404


async def test_comments(client, make_user, make_novel, make_chapter):
    _, author_headers = await make_user(role=UserRole.AUTHOR)
    reader, reader_headers = await make_user(role=UserRole.USER, username="fan")
    novel = await make_novel(author_headers, status="PUBLISHED")
    chapter = await make_chapter(author_headers, novel["id"])

    response = await client.post(f"/chapters/{chapter['id']}/comments", json={"content": "Great!"},
                                 headers=reader_headers)
    assert response.status_code == 201
    top = response.json()
    assert top["username"] == "fan"

    response = await client.post(f"/chapters/{chapter['id']}/comments",
                                 json={"content": "Thanks", "parent_id": top["id"]}, headers=author_headers)
    assert response.status_code == 201

    response = await client.post(f"/chapters/{chapter['id']}/comments",
                                 json={"content": "Lost", "parent_id": 9999}, headers=author_headers)
    assert response.status_code == 400

    comments = (await client.get(f"/chapters/{chapter['id']}/comments")).json()
    assert [c["content"] for c in comments] == ["Great!"]

    anonymous = await client.post(f"/chapters/{chapter['id']}/comments", json={"content": "hi"})
    assert anonymous.status_code in (401, 403)
