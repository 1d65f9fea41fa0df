import argparse

from library_api.core.config import logger, settings
from library_api.core.database import Base, SessionLocal, engine
from library_api.models.models import Book, Genre

SAMPLE_BOOKS = [
    dict(title='Designing Data-Intensive Applications', author='Martin Kleppmann',
         genre=Genre.SCIENCE, isbn='9781449373320', copies=3,
         description='Reliable, scalable and maintainable data systems.'),
    dict(title='The Hobbit', author='J.R.R. Tolkien', genre=Genre.FANTASY,
         isbn='9780547928227', copies=5,
         description='A reluctant hobbit joins a company of dwarves.'),
    dict(title='The Guns of August', author='Barbara W. Tuchman', genre=Genre.HISTORY,
         isbn='9780345476098', copies=2,
         description='The first month of the First World War.'),
]


def seed():
    db = SessionLocal()
    try:
        # idempotent on isbn
        existing = {isbn for (isbn,) in db.query(Book.isbn).all()}
        added = [Book(**data) for data in SAMPLE_BOOKS if data['isbn'] not in existing]
        db.add_all(added)
        db.commit()
        logger.info(f'Seeded {len(added)} sample books')
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Library catalog utilities')
    parser.add_argument('--initdb', action='store_true', help='Create tables')
    parser.add_argument('--seed', action='store_true', help='Seed sample books')
    parser.add_argument('--serve', action='store_true', help='Run the API with uvicorn')
    args = parser.parse_args(argv)

    if args.initdb or args.seed:
        Base.metadata.create_all(bind=engine)
    if args.seed:
        seed()
    if args.serve:
        import uvicorn
        uvicorn.run("library_api.main:app", host=settings.host, port=settings.port)
    elif not (args.initdb or args.seed):
        parser.print_help()


if __name__ == '__main__':
    main()
