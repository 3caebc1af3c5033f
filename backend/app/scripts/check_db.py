import asyncio

from sqlalchemy import select, func

from app.core.config import get_settings
from app.core.database import Database
from app.models.tables import Measure


async def check_db():
    database = Database(get_settings())
    try:
        async for session in database.session():
            count_result = await session.execute(select(func.count(Measure.id)))
            total = count_result.scalar()
            print(f'Total measures in database: {total}')

            result = await session.execute(
                select(Measure).order_by(Measure.created_at.desc()).limit(5)
            )
            measures = result.scalars().all()

            if measures:
                print('\nLatest measures:')
                for m in measures:
                    print(
                        f'ID: {m.id}, Customer: {m.customer_code}, Type: {m.type.value}, '
                        f'Value: {m.value}, Confirmed: {m.confirmed}, Read at: {m.client_reading_datetime}'
                    )
            else:
                print('No measures found in database')
            break
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(check_db())
