def create_show(client, auth_headers, seed, **overrides):
    body = {
        "name": "Launch Night",
        "start_time": "2026-06-05T19:00:00Z",
        "end_time": "2026-06-05T21:00:00Z",
        "client_id": seed.client.uid,
        "studio_room_id": seed.rooms[0].uid,
        "show_type_id": seed.show_type.uid,
        "show_status_id": seed.show_status.uid,
        "show_standard_id": seed.show_standard.uid,
        "mcs": [{"mc_id": seed.mcs[0].uid, "note": "host"}],
        "platforms": [{"platform_id": seed.platforms[0].uid}],
    }
    body.update(overrides)
    return client.post("/api/shows", json=body, headers=auth_headers)


def test_create_and_get_show(client, auth_headers, seed):
    response = create_show(client, auth_headers, seed)
    assert response.status_code == 201, response.text
    show = response.json()

    assert show["client_id"] == seed.client.uid
    assert show["studio_room_name"] == "Room A"
    assert [item["mc_id"] for item in show["mcs"]] == [seed.mcs[0].uid]
    assert show["mcs"][0]["note"] == "host"
    assert [item["platform_name"] for item in show["platforms"]] == ["Shopee"]

    fetched = client.get(f"/api/shows/{show['id']}", headers=auth_headers)
    assert fetched.json()["id"] == show["id"]


def test_create_show_with_inverted_times_is_400(client, auth_headers, seed):
    response = create_show(client, auth_headers, seed, end_time="2026-06-05T18:00:00Z")

    assert response.status_code == 400
    assert response.json()["message"] == "Show end time must be after start time"


def test_replace_mcs_route(client, auth_headers, seed):
    show_id = create_show(client, auth_headers, seed).json()["id"]

    replaced = client.patch(
        f"/api/shows/{show_id}/mcs/replace",
        json={"mcs": [{"mc_id": seed.mcs[1].uid}, {"mc_id": seed.mcs[2].uid, "note": "guest"}]},
        headers=auth_headers,
    )
    assert replaced.status_code == 200
    assert [item["mc_id"] for item in replaced.json()["mcs"]] == [seed.mcs[1].uid, seed.mcs[2].uid]

    missing = client.patch(
        f"/api/shows/{show_id}/mcs/replace",
        json={"mcs": [{"mc_id": "mc_ghost"}]},
        headers=auth_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["details"] == {"entity": "MC", "id": "mc_ghost"}

    unchanged = client.get(f"/api/shows/{show_id}", headers=auth_headers)
    assert [item["mc_id"] for item in unchanged.json()["mcs"]] == [seed.mcs[1].uid, seed.mcs[2].uid]


def test_replace_and_remove_platform_routes(client, auth_headers, seed):
    show_id = create_show(client, auth_headers, seed).json()["id"]

    replaced = client.patch(
        f"/api/shows/{show_id}/platforms/replace",
        json={
            "platforms": [
                {"platform_id": seed.platforms[1].uid, "live_stream_link": "https://tt.example/live", "viewer_count": 5}
            ]
        },
        headers=auth_headers,
    )
    assert replaced.status_code == 200
    platforms = replaced.json()["platforms"]
    assert [item["platform_id"] for item in platforms] == [seed.platforms[1].uid]
    assert platforms[0]["viewer_count"] == 5

    removed = client.patch(
        f"/api/shows/{show_id}/platforms/remove",
        json={"platform_ids": [seed.platforms[1].uid]},
        headers=auth_headers,
    )
    assert removed.json()["platforms"] == []

    removed_mcs = client.patch(
        f"/api/shows/{show_id}/mcs/remove",
        json={"mc_ids": [seed.mcs[0].uid]},
        headers=auth_headers,
    )
    assert removed_mcs.json()["mcs"] == []


def test_update_list_and_delete_show(client, auth_headers, seed):
    show_id = create_show(client, auth_headers, seed).json()["id"]

    updated = client.patch(f"/api/shows/{show_id}", json={"name": "Launch Night Encore"}, headers=auth_headers)
    assert updated.json()["name"] == "Launch Night Encore"
    assert len(updated.json()["mcs"]) == 1

    listed = client.get("/api/shows", params={"client_id": seed.client.uid}, headers=auth_headers)
    assert [item["id"] for item in listed.json()] == [show_id]

    assert client.delete(f"/api/shows/{show_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/shows/{show_id}", headers=auth_headers).status_code == 404
