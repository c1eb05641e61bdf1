from obf.extensions import db
from seeds.demo_data import seed_badges_and_criteria, seed_completions, seed_courses, seed_users


def main():
    try:
        db.drop_all()
        db.create_all()

        users = seed_users()
        courses = seed_courses(users)
        seed_badges_and_criteria(courses)
        seed_completions(users)

        print("Database seeded. Try: python run.py event course_completed --user-id 3 --course-id 42")
    finally:
        db.remove_session()


if __name__ == '__main__':
    main()
