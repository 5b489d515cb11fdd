import pytest

from kitaabsence.commands import CommandBridge
from kitaabsence.errors import UnknownCommandError, ValidationError


def add_child(bridge, name, group='', birth_date=None):
    return bridge.invoke('add-child', {'name': name, 'group': group, 'birth_date': birth_date})


def add_absence(bridge, child_id, start, end=None, reason=None):
    return bridge.invoke('add-absence', {
        'child_id': child_id, 'start_date': start, 'end_date': end, 'reason': reason,
    })


def test_command_names(bridge):
    assert set(bridge.command_names) == {
        'list-children', 'add-child', 'update-child', 'delete-child',
        'import-children-csv', 'list-absences-for-month', 'list-absences-for-day',
        'add-absence', 'delete-absence', 'statistics-for-month', 'open-file-dialog',
    }


def test_unknown_command(bridge):
    with pytest.raises(UnknownCommandError) as exc:
        bridge.invoke('drop-everything')
    assert exc.value.name == 'drop-everything'


def test_add_and_list_children_sorted(bridge):
    add_child(bridge, 'Zoe', 'Bären')
    add_child(bridge, 'Anna', 'Sonne', '2020-05-01')
    add_child(bridge, 'Ben', 'Bären')
    rows = bridge.invoke('list-children')
    assert [(r['name'], r['group']) for r in rows] == [
        ('Ben', 'Bären'), ('Zoe', 'Bären'), ('Anna', 'Sonne'),
    ]
    assert rows[2]['birth_date'] == '2020-05-01'
    assert set(rows[0]) == {'id', 'name', 'group', 'birth_date'}


def test_add_child_returns_new_id(bridge):
    first = add_child(bridge, 'A')
    second = add_child(bridge, 'B')
    assert second > first > 0


def test_add_child_requires_name(bridge):
    with pytest.raises(ValidationError):
        add_child(bridge, '   ')
    assert bridge.invoke('list-children') == []


def test_add_child_normalizes_birth_date(bridge):
    add_child(bridge, 'Anna', birth_date='24.12.2020')
    assert bridge.invoke('list-children')[0]['birth_date'] == '2020-12-24'


def test_update_child(bridge):
    cid = add_child(bridge, 'Anna', 'Sonne')
    ok = bridge.invoke('update-child', {'id': cid, 'name': 'Anna M.', 'group': 'Mond', 'birth_date': None})
    assert ok is True
    row = bridge.invoke('list-children')[0]
    assert (row['name'], row['group']) == ('Anna M.', 'Mond')


def test_update_unknown_child_reports_false(bridge):
    assert bridge.invoke('update-child', {'id': 999, 'name': 'X'}) is False


def test_delete_child_removes_absences(bridge, db):
    cid = add_child(bridge, 'Anna')
    other = add_child(bridge, 'Ben')
    add_absence(bridge, cid, '2025-02-03', '2025-02-05')
    add_absence(bridge, other, '2025-02-04')
    assert bridge.invoke('delete-child', cid) is True
    rows = db.query_all("SELECT child_id FROM absences")
    assert rows == [{'child_id': other}]
    assert [r['child_name'] for r in bridge.invoke('list-absences-for-day', '2025-02-04')] == ['Ben']
    assert bridge.invoke('list-absences-for-day', '2025-02-03') == []
    month = bridge.invoke('list-absences-for-month', {'year': 2025, 'month': 2})
    assert [r['child_id'] for r in month] == [other]
    assert bridge.invoke('delete-child', cid) is False


def test_add_child_rejects_partial_birth_date(bridge):
    with pytest.raises(ValidationError):
        add_child(bridge, 'Anna', birth_date='2019')
    with pytest.raises(ValidationError):
        add_child(bridge, 'Anna', birth_date='2020-13-01')
    assert bridge.invoke('list-children') == []


def test_import_children_csv(bridge):
    content = "Name,Gruppe,Geburtsdatum\nAnna,Sonne,2020-05-01\n\nBen;Mond;\n"
    assert bridge.invoke('import-children-csv', content) == 2
    rows = bridge.invoke('list-children')
    assert [(r['name'], r['group'], r['birth_date']) for r in rows] == [
        ('Ben', 'Mond', None), ('Anna', 'Sonne', '2020-05-01'),
    ]


def test_import_header_only(bridge):
    assert bridge.invoke('import-children-csv', "Name,Gruppe,Geburtsdatum\n") == 0
    assert bridge.invoke('list-children') == []


def test_import_requires_text(bridge):
    with pytest.raises(ValidationError):
        bridge.invoke('import-children-csv', None)


def test_add_absence_single_day_defaults_end(bridge, db):
    cid = add_child(bridge, 'Anna')
    aid = add_absence(bridge, cid, '2025-03-10')
    row = db.query_one("SELECT * FROM absences WHERE id=?", (aid,))
    assert row['start_date'] == row['end_date'] == '2025-03-10'
    assert row['reason'] is None


def test_add_absence_rejects_missing_child(bridge):
    with pytest.raises(ValidationError):
        add_absence(bridge, 0, '2025-03-10')
    with pytest.raises(ValidationError):
        add_absence(bridge, None, '2025-03-10')


def test_add_absence_rejects_inverted_range(bridge):
    cid = add_child(bridge, 'Anna')
    with pytest.raises(ValidationError):
        add_absence(bridge, cid, '2025-03-10', '2025-03-09')


def test_add_absence_rejects_bad_date(bridge):
    cid = add_child(bridge, 'Anna')
    with pytest.raises(ValidationError):
        add_absence(bridge, cid, '10.03.2025')


def test_absences_for_day_overlap(bridge):
    anna = add_child(bridge, 'Anna', 'Sonne')
    ben = add_child(bridge, 'Ben', 'Bären')
    add_absence(bridge, anna, '2025-02-03', '2025-02-07', 'Urlaub')
    add_absence(bridge, ben, '2025-02-07')
    add_absence(bridge, ben, '2025-02-10')

    day = bridge.invoke('list-absences-for-day', '2025-02-07')
    assert [r['child_name'] for r in day] == ['Ben', 'Anna']
    assert day[1]['reason'] == 'Urlaub'
    assert day[1]['child_group'] == 'Sonne'
    assert bridge.invoke('list-absences-for-day', '2025-02-08') == []
    assert len(bridge.invoke('list-absences-for-day', '2025-02-03')) == 1


def test_absences_for_month_includes_overlapping(bridge):
    cid = add_child(bridge, 'Anna')
    add_absence(bridge, cid, '2025-01-28', '2025-02-02')
    add_absence(bridge, cid, '2025-02-20')
    add_absence(bridge, cid, '2025-03-01')
    rows = bridge.invoke('list-absences-for-month', {'year': 2025, 'month': 2})
    assert [r['start_date'] for r in rows] == ['2025-01-28', '2025-02-20']


def test_delete_absence(bridge):
    cid = add_child(bridge, 'Anna')
    aid = add_absence(bridge, cid, '2025-02-20')
    assert bridge.invoke('delete-absence', aid) is True
    assert bridge.invoke('delete-absence', aid) is False
    assert bridge.invoke('list-absences-for-day', '2025-02-20') == []


@pytest.mark.parametrize('year,month,days', [(2025, 2, 28), (2024, 2, 29), (2025, 4, 30), (2025, 12, 31)])
def test_statistics_cover_every_day(bridge, year, month, days):
    stats = bridge.invoke('statistics-for-month', {'year': year, 'month': month})
    assert len(stats) == days
    assert stats[0]['date'] == f"{year:04d}-{month:02d}-01"
    assert stats[-1]['date'] == f"{year:04d}-{month:02d}-{days:02d}"
    assert all(s['count'] == 0 for s in stats)


def test_statistics_counts(bridge):
    anna = add_child(bridge, 'Anna')
    ben = add_child(bridge, 'Ben')
    add_absence(bridge, anna, '2025-01-30', '2025-02-03')
    add_absence(bridge, ben, '2025-02-03', '2025-02-04')
    stats = {s['date']: s['count'] for s in
             bridge.invoke('statistics-for-month', {'year': 2025, 'month': 2})}
    assert stats['2025-02-01'] == 1
    assert stats['2025-02-03'] == 2
    assert stats['2025-02-04'] == 1
    assert stats['2025-02-05'] == 0


def test_statistics_rejects_bad_month(bridge):
    with pytest.raises(ValidationError):
        bridge.invoke('statistics-for-month', {'year': 2025, 'month': 13})
    with pytest.raises(ValidationError):
        bridge.invoke('statistics-for-month', [2025, 2])


def test_open_file_dialog_cancelled(db):
    assert CommandBridge(db).invoke('open-file-dialog') is None
    assert CommandBridge(db, choose_file=lambda: None).invoke('open-file-dialog') is None


def test_open_file_dialog_reads_csv(db, tmp_path):
    path = tmp_path / 'kinder.csv'
    path.write_text("Name,Gruppe\nAnna,Sonne\n", encoding='utf-8-sig')
    bridge = CommandBridge(db, choose_file=lambda: str(path))
    assert bridge.invoke('open-file-dialog') == "Name,Gruppe\nAnna,Sonne\n"


def test_open_file_dialog_rejects_other_files(db, tmp_path):
    path = tmp_path / 'kinder.txt'
    path.write_text("x", encoding='utf-8')
    bridge = CommandBridge(db, choose_file=lambda: str(path))
    with pytest.raises(ValidationError):
        bridge.invoke('open-file-dialog')
