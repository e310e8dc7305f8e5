from rest_framework.permissions import SAFE_METHODS, BasePermission

from accounts.permissions import is_admin


class IsOwnerTeacherOrAdmin(BasePermission):
    """
    Изменять группу/урок/отметку может администратор или преподаватель,
    которому запись принадлежит. Чтение ограничено queryset'ом ViewSet'а.
    """

    message = 'Можно изменять только свои записи'

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS or is_admin(request.user):
            return True
        return request.user.pk in owner_ids(obj)


def owner_ids(obj):
    """Преподаватели, которым принадлежит запись (группа, урок, отметка)."""
    ids = {getattr(obj, 'teacher_id', None)}
    group = getattr(obj, 'group', None)
    if group is not None:
        ids.add(group.teacher_id)
    lesson = getattr(obj, 'lesson', None)
    if lesson is not None:
        ids.update((lesson.teacher_id, lesson.group.teacher_id))
    student = getattr(obj, 'student', None)
    if student is not None and student.group_id:
        ids.add(student.group.teacher_id)
    ids.discard(None)
    return ids
