from kitaabsence.csv_import import parse_children_csv


def test_header_skipped_and_blank_lines_ignored():
    content = "Name,Gruppe,Geburtsdatum\nAnna,Sonne,2020-05-01\n\nBen;Mond;\n"
    children = parse_children_csv(content)
    assert [(c.name, c.group, c.birth_date) for c in children] == [
        ('Anna', 'Sonne', '2020-05-01'),
        ('Ben', 'Mond', None),
    ]
    assert all(c.id is None for c in children)


def test_quotes_and_whitespace_stripped():
    content = 'Name;Gruppe;Geburtsdatum\r\n "Clara" ; \'Regenbogen\' ; "2019-11-30"\r\n'
    (child,) = parse_children_csv(content)
    assert child.name == 'Clara'
    assert child.group == 'Regenbogen'
    assert child.birth_date == '2019-11-30'


def test_rows_without_name_are_skipped():
    content = "Name,Gruppe\n,Sonne\nDavid\n"
    children = parse_children_csv(content)
    assert [(c.name, c.group) for c in children] == [('David', '')]


def test_german_birth_date_normalized():
    (child,) = parse_children_csv("Name,Gruppe,Geburtsdatum\nEmil,Mond,03.04.2021\n")
    assert child.birth_date == '2021-04-03'


def test_unknown_birth_date_kept_as_text():
    (child,) = parse_children_csv("Name,Gruppe,Geburtsdatum\nFrida,Mond,unbekannt\n")
    assert child.birth_date == 'unbekannt'


def test_empty_content():
    assert parse_children_csv('') == []
    assert parse_children_csv('Name,Gruppe,Geburtsdatum') == []


def test_missing_group_and_birth_date():
    children = parse_children_csv("Name,Gruppe,Geburtsdatum\nAnna,GroupA,2020-01-01\nBen,,\n")
    assert len(children) == 2
    assert (children[1].name, children[1].group, children[1].birth_date) == ('Ben', '', None)


def test_partial_or_impossible_birth_date_kept_as_text():
    children = parse_children_csv("Name,Gruppe,Geburtsdatum\nGreta,Mond,2020\nHugo,Mond,2020-13-01\n")
    assert [c.birth_date for c in children] == ['2020', '2020-13-01']
