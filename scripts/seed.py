"""
Seed database script.

Creates the tables, the default departments, an administrator, and one
head plus one employee per department.
"""

import asyncio

from portal.apps.auth.models import Role, User
from portal.apps.departments.models import Department
from portal.db.database import async_session_factory, init_db
from portal.utils.logger import get_logger
from portal.utils.security import hash_password

logger = get_logger(__name__)

DEFAULT_PASSWORD = "Password123!"

DEPARTMENTS_TO_SEED = [
    {"name": "Nhân sự", "description": "Tuyển dụng, đào tạo và phúc lợi"},
    {"name": "Kế toán", "description": "Tài chính và báo cáo"},
    {"name": "Công nghệ thông tin", "description": "Hạ tầng và phần mềm nội bộ"},
    {"name": "Kinh doanh", "description": "Bán hàng và chăm sóc khách hàng"},
]

# Department is referenced by name; None means no department.
USERS_TO_SEED = [
    {"email": "admin@portal.com.vn", "name": "Quản trị hệ thống", "role": Role.ADMIN, "department": None},
    {"email": "truongphong.nhansu@portal.com.vn", "name": "Trưởng phòng Nhân sự", "role": Role.DEPARTMENT_HEAD, "department": "Nhân sự"},
    {"email": "nhanvien.nhansu@portal.com.vn", "name": "Nhân viên Nhân sự", "role": Role.EMPLOYEE, "department": "Nhân sự"},
    {"email": "truongphong.ketoan@portal.com.vn", "name": "Trưởng phòng Kế toán", "role": Role.DEPARTMENT_HEAD, "department": "Kế toán"},
    {"email": "nhanvien.ketoan@portal.com.vn", "name": "Nhân viên Kế toán", "role": Role.EMPLOYEE, "department": "Kế toán"},
    {"email": "truongphong.cntt@portal.com.vn", "name": "Trưởng phòng CNTT", "role": Role.DEPARTMENT_HEAD, "department": "Công nghệ thông tin"},
    {"email": "nhanvien.kinhdoanh@portal.com.vn", "name": "Nhân viên Kinh doanh", "role": Role.EMPLOYEE, "department": "Kinh doanh"},
]


async def seed() -> None:
    await init_db()

    async with async_session_factory() as session:
        try:
            logger.info("Starting database seed process...")

            departments = {}
            for dept_data in DEPARTMENTS_TO_SEED:
                department = await Department.find_one(session, filters={"name": dept_data["name"]})
                if department:
                    logger.info(f"Department {dept_data['name']} already exists. Skipping.")
                else:
                    department = Department(**dept_data)
                    session.add(department)
                    await session.flush()
                    logger.info(f"Created department: {department.name}")
                departments[department.name] = department

            for user_data in USERS_TO_SEED:
                existing = await User.find_one(session, filters={"email": user_data["email"]})
                if existing:
                    logger.info(f"User {user_data['email']} already exists. Skipping.")
                    continue

                department = departments.get(user_data["department"]) if user_data["department"] else None
                logger.info(f"Creating user: {user_data['email']} ({user_data['role'].value})")

                session.add(
                    User(
                        email=user_data["email"],
                        name=user_data["name"],
                        hashed_password=hash_password(DEFAULT_PASSWORD),
                        role=user_data["role"],
                        department_id=department.id if department else None,
                        is_active=True,
                    )
                )

            await session.commit()
            logger.info("Database seeded successfully")

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to seed database: {e}")
            raise


if __name__ == "__main__":
    asyncio.run(seed())
