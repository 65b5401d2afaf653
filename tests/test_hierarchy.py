"""
Tests for department hierarchy walking and edit permissions
"""
from app.models.task import Task, TaskAssignment
from app.models.user import UserRole
from app.services.authorization import can_edit_task
from app.utils.hierarchy import DepartmentHierarchy


def _tree(make_department):
    root = make_department("Company")
    engineering = make_department("Engineering", parent=root)
    backend = make_department("Backend", parent=engineering)
    sales = make_department("Sales", parent=root)
    return root, engineering, backend, sales


def test_can_access_own_and_descendant_departments(db, make_department):
    root, engineering, backend, sales = _tree(make_department)
    hierarchy = DepartmentHierarchy(db)

    assert hierarchy.can_access_department(engineering.id, engineering.id)
    assert hierarchy.can_access_department(engineering.id, backend.id)
    assert hierarchy.can_access_department(root.id, backend.id)
    assert not hierarchy.can_access_department(engineering.id, sales.id)
    assert not hierarchy.can_access_department(backend.id, engineering.id)
    assert not hierarchy.can_access_department(None, engineering.id)


def test_descendant_ids_skip_inactive(db, make_department):
    root, engineering, backend, sales = _tree(make_department)
    sales.is_active = False
    db.commit()

    ids = DepartmentHierarchy(db).get_descendant_ids(root.id)
    assert set(ids) == {root.id, engineering.id, backend.id}
    assert ids[0] == root.id


def test_build_tree_is_depth_first_and_sorted(db, make_department):
    root, engineering, backend, sales = _tree(make_department)
    tree = DepartmentHierarchy(db).build_tree()

    assert [(d["name"], d["level"]) for d in tree] == [
        ("Company", 0),
        ("Engineering", 1),
        ("Backend", 2),
        ("Sales", 1),
    ]


def test_cycle_does_not_loop_forever(db, make_department):
    a = make_department("A")
    b = make_department("B", parent=a)
    a.parent_id = b.id
    db.commit()
    other = make_department("Other")

    assert not DepartmentHierarchy(db).can_access_department(other.id, a.id)


class TestCanEditTask:
    def _task(self, department_id, assignee_ids):
        task = Task(title="t", department_id=department_id)
        task.assignments = [TaskAssignment(user_id=user_id) for user_id in assignee_ids]
        return task

    def _user(self, make_user, department, role, is_hr_admin=False):
        return make_user(role=role, department=department, is_hr_admin=is_hr_admin)

    def test_staff_only_when_assigned(self, make_department, make_user):
        department = make_department()
        staff = self._user(make_user, department, UserRole.STAFF)

        assert can_edit_task(self._task(department.id, [staff.id]), staff, [department.id])
        assert not can_edit_task(self._task(department.id, [999]), staff, [department.id])

    def test_manager_inside_hierarchy(self, make_department, make_user):
        department = make_department()
        manager = self._user(make_user, department, UserRole.MANAGER)

        assert can_edit_task(self._task(department.id, [999]), manager, [department.id])
        assert not can_edit_task(self._task(department.id + 100, [999]), manager, [department.id])

    def test_hr_flagged_staff_edits_hierarchy(self, make_department, make_user):
        department = make_department()
        hr_staff = self._user(make_user, department, UserRole.STAFF, is_hr_admin=True)

        assert can_edit_task(self._task(department.id, [999]), hr_staff, [department.id])

    def test_empty_hierarchy_denies(self, make_department, make_user):
        department = make_department()
        manager = self._user(make_user, department, UserRole.MANAGER)

        assert not can_edit_task(self._task(department.id, [manager.id]), manager, [])
