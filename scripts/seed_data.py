#!/usr/bin/env python3
"""
Seed script to populate a running ProjectHub API with demo data.

Создаёт администратора, двух участников, проекты с задачами,
подзадачами, комментариями и событиями календаря.
"""

import requests

API_URL = "http://localhost:8000/api/v1"
API_KEY = "dev-api-key-change-in-production"
HEADERS = {"X-API-Key": API_KEY, "Content-Type": "application/json"}

PEOPLE = [
    {"email": "admin@projecthub.dev", "display_name": "Admin", "metadata": {"role": "admin"}},
    {"email": "anna@projecthub.dev", "display_name": "Анна", "full_name": "Анна Смирнова"},
    {"email": "ivan@projecthub.dev", "display_name": "Иван", "full_name": "Иван Петров"},
]

PROJECTS = [
    {
        "name": "Редизайн сайта",
        "description": "Новый дизайн и вёрстка публичного сайта",
        "category": "design",
        "start_date": "2026-11-01",
        "end_date": "2027-02-28",
    },
    {
        "name": "Мобильное приложение",
        "description": "MVP приложения для iOS и Android",
        "category": "development",
        "start_date": "2026-11-15",
    },
]

TASKS = {
    "Редизайн сайта": [
        {
            "title": "Собрать требования",
            "priority": "high",
            "status": "done",
            "subtasks": ["Интервью с отделом продаж", "Анализ конкурентов"],
        },
        {
            "title": "Макеты главной страницы",
            "priority": "high",
            "status": "in-progress",
            "due_date": "2026-12-01",
            "subtasks": ["Desktop", "Mobile", "Согласование"],
        },
        {"title": "Вёрстка", "priority": "medium", "due_date": "2027-01-20"},
    ],
    "Мобильное приложение": [
        {"title": "Выбрать стек", "priority": "critical", "status": "review"},
        {"title": "Экран авторизации", "priority": "medium", "subtasks": ["UI", "API"]},
    ],
}

EVENTS = {
    "Редизайн сайта": [
        {"title": "Демо макетов", "event_date": "2026-12-05", "event_type": "meeting"},
        {"title": "Запуск", "event_date": "2027-02-28", "event_type": "deadline"},
    ],
}


def user_headers(profile):
    return {**HEADERS, "X-User-Id": str(profile["id"])}


def create_profile(person):
    response = requests.post(f"{API_URL}/profiles", json=person)
    if response.status_code == 201:
        return response.json()
    else:
        print(f"Error creating profile {person['email']}: {response.text}")
        return None


def create_project(admin, project_data):
    response = requests.post(f"{API_URL}/projects", headers=user_headers(admin), json=project_data)
    if response.status_code == 201:
        return response.json()
    else:
        print(f"Error creating project {project_data['name']}: {response.text}")
        return None


def add_member(admin, project_id, profile, role):
    response = requests.post(
        f"{API_URL}/projects/{project_id}/members",
        headers=user_headers(admin),
        json={"user_id": profile["id"], "role": role},
    )
    if response.status_code != 201:
        print(f"Error adding {profile['email']}: {response.text}")


def create_task(author, task_data, project_id, assignee=None):
    task_payload = {
        "title": task_data["title"],
        "project_id": project_id,
        "priority": task_data.get("priority", "medium"),
        "status": task_data.get("status", "todo"),
    }

    if "due_date" in task_data:
        task_payload["due_date"] = task_data["due_date"]

    if assignee:
        task_payload["assignee_id"] = assignee["id"]

    response = requests.post(f"{API_URL}/tasks", headers=user_headers(author), json=task_payload)
    if response.status_code != 201:
        print(f"Error creating task {task_data['title']}: {response.text}")
        return None

    task = response.json()
    for title in task_data.get("subtasks", []):
        requests.post(
            f"{API_URL}/tasks/{task['id']}/subtasks",
            headers=user_headers(author),
            json={"title": title},
        )
    return task


def main():
    print("=" * 60)
    print("Seeding ProjectHub with demo data")
    print("=" * 60)

    print("\n👤 Creating profiles...")
    profiles = [p for p in (create_profile(person) for person in PEOPLE) if p]
    if len(profiles) < len(PEOPLE):
        print("  ⚠️ Not all profiles were created, stopping")
        return
    admin, anna, ivan = profiles
    for profile in profiles:
        print(f"  ✅ {profile['email']} (id={profile['id']}, role={profile['role']})")

    project_ids = {}
    print("\n📁 Creating projects...")
    for project_data in PROJECTS:
        project = create_project(admin, project_data)
        if project:
            project_ids[project_data["name"]] = project["id"]
            add_member(admin, project["id"], anna, "member")
            add_member(admin, project["id"], ivan, "viewer")
            print(f"  ✅ {project_data['name']} (id={project['id']})")

    print("\n📋 Creating tasks...")
    total_tasks = 0
    for project_name, tasks in TASKS.items():
        if project_name not in project_ids:
            print(f"  ⚠️ Project {project_name} not found, skipping tasks")
            continue

        project_id = project_ids[project_name]
        print(f"\n  📁 {project_name}:")
        for task_data in tasks:
            task = create_task(anna, task_data, project_id, assignee=anna)
            if task:
                total_tasks += 1
                requests.post(
                    f"{API_URL}/tasks/{task['id']}/comments",
                    headers=user_headers(admin),
                    json={"comment": f"@{anna['display_name']} держи в курсе", "mentions": [anna["id"]]},
                )
                due = task_data.get("due_date", "no date")
                print(f"    ✅ {task_data['title'][:50]} ({due})")

    print("\n📅 Creating events...")
    for project_name, events in EVENTS.items():
        for event in events:
            requests.post(
                f"{API_URL}/projects/{project_ids[project_name]}/events",
                headers=user_headers(admin),
                json=event,
            )
            print(f"  ✅ {event['title']} ({event['event_date']})")

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {len(project_ids)} projects and {total_tasks} tasks")
    print("=" * 60)


if __name__ == "__main__":
    main()
